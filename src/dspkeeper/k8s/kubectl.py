"""Thin kubectl runner. Helpers here never raise; callers inspect the result dict."""

from __future__ import annotations

import json
import os
import subprocess

_NOT_FOUND_MARKER = "(NotFound)"


def resolve_kubectl(kubectl: str | None = None) -> str:
    if kubectl and kubectl.strip():
        return kubectl.strip()
    return (os.environ.get("KUBECTL") or "").strip() or "kubectl"


def run_cmd(argv: list[str], *, stdin: str | None = None, timeout_s: float = 60.0) -> dict:
    try:
        cp = subprocess.run(
            argv,
            input=stdin,
            capture_output=True,
            text=True,
            timeout=timeout_s,
        )
        return {
            "argv": argv,
            "ok": cp.returncode == 0,
            "rc": cp.returncode,
            "stdout": cp.stdout,
            "stderr": cp.stderr,
            "error": None,
        }
    except FileNotFoundError as e:
        return {
            "argv": argv,
            "ok": False,
            "rc": 127,
            "stdout": "",
            "stderr": str(e),
            "error": "not_found",
        }
    except subprocess.TimeoutExpired as e:
        return {
            "argv": argv,
            "ok": False,
            "rc": 124,
            "stdout": e.stdout or "",
            "stderr": e.stderr or "",
            "error": "timeout",
        }


def kubectl(
    args: list[str],
    *,
    kubectl_bin: str | None = None,
    stdin: str | None = None,
    timeout_s: float = 60.0,
) -> dict:
    return run_cmd([resolve_kubectl(kubectl_bin), *args], stdin=stdin, timeout_s=timeout_s)


def parse_json_stdout(res: dict) -> dict | None:
    try:
        payload = json.loads(res.get("stdout") or "{}")
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


def is_not_found(res: dict, name: str | None = None) -> bool:
    """True only for an API server NotFound, naming ``name`` when given.

    "could not find the requested resource" (unknown API group) is not a match.
    """
    if res.get("ok") or res.get("error") is not None:
        return False
    stderr = str(res.get("stderr") or "")
    if _NOT_FOUND_MARKER not in stderr:
        return False
    return name is None or f'"{name}"' in stderr


def describe_failure(res: dict, *, max_chars: int = 400) -> str:
    text = str(res.get("stderr") or "").strip().replace("\n", " ")
    if len(text) > max_chars:
        text = f"{text[:max_chars]}..."
    if res.get("error") == "not_found":
        return f"kubectl not found ({text})" if text else "kubectl not found"
    if res.get("error") == "timeout":
        return "kubectl timed out"
    return f"rc={res.get('rc')}: {text}" if text else f"rc={res.get('rc')}"
