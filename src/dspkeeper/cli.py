"""Command-line interface for dspkeeper."""

from __future__ import annotations

import argparse
import json
import os
import shutil
import sys
from datetime import datetime, timezone
from pathlib import Path

from dspkeeper import __version__ as DSPK_VERSION
from dspkeeper.audit.explain import ExplainLog
from dspkeeper.cluster.client import ClusterClient
from dspkeeper.core.model import default_manifest_root, load_document
from dspkeeper.deploy.params import IMAGE_PARAM_MAP, apply_params
from dspkeeper.errors import ArgoWorkflowConflictError, ReconcileError, SpecValidationError
from dspkeeper.pipelines.component import DataSciencePipelines
from dspkeeper.pipelines.conflicts import ARGO_WORKFLOW_CRD, check_argo_workflow_conflict


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _report_ts() -> str:
    return _utc_now().strftime("%Y%m%d_%H%M%S")


def _ensure_out_dir(out_dir: str) -> Path:
    path = Path(out_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _write_json_report(path: Path, payload: dict) -> None:
    path.write_text(
        json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True) + "\n",
        encoding="utf-8",
    )


def _write_latest_with_timestamp(
    out_dir: Path,
    *,
    latest_name: str,
    prefix: str,
    payload: dict,
) -> tuple[Path, Path]:
    ts_path = out_dir / f"{prefix}_{_report_ts()}.json"
    latest_path = out_dir / latest_name
    _write_json_report(ts_path, payload)
    _write_json_report(latest_path, payload)
    return latest_path, ts_path


def _manifest_root_from_args(args: argparse.Namespace) -> Path:
    if getattr(args, "manifests_path", None):
        return Path(args.manifests_path)
    return default_manifest_root()


def cmd_reconcile(args: argparse.Namespace) -> int:
    out_dir = _ensure_out_dir(args.out)
    explain = ExplainLog(out_dir / "explain.jsonl")
    try:
        descriptor, context = load_document(Path(args.config), manifest_root=_manifest_root_from_args(args))
    except SpecValidationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    component = DataSciencePipelines(
        descriptor,
        ClusterClient(explain=explain),
        explain=explain,
        ready_attempts=args.ready_attempts,
        ready_interval_s=args.ready_interval,
    )
    report: dict = {
        "schema": "reconcile.v0",
        "component": component.name,
        "management_state": descriptor.management_state.value,
        "platform": context.platform.value,
        "namespace": context.applications_namespace,
        "ok": False,
        "error": None,
    }
    rc = 0
    try:
        component.reconcile(context)
        report["ok"] = True
    except ArgoWorkflowConflictError as exc:
        report["error"] = {"kind": "conflict", "message": str(exc), "crd": exc.crd_name}
        print(f"ERROR: {exc}", file=sys.stderr)
        rc = 2
    except ReconcileError as exc:
        report["error"] = {"kind": type(exc).__name__, "message": str(exc)}
        print(f"ERROR: {exc}", file=sys.stderr)
        rc = 1
    report["conditions"] = [c.to_dict() for c in component.conditions]
    _write_latest_with_timestamp(out_dir, latest_name="reconcile_latest.json", prefix="reconcile", payload=report)
    return rc


def cmd_conflicts(args: argparse.Namespace) -> int:
    out_dir = _ensure_out_dir(args.out)
    report: dict = {"schema": "conflicts.v0", "crd": ARGO_WORKFLOW_CRD, "signal": None, "error": None}
    rc = 0
    try:
        signal = check_argo_workflow_conflict(ClusterClient(), DataSciencePipelines.name)
        report["signal"] = signal.value
    except ArgoWorkflowConflictError as exc:
        report["signal"] = "foreign"
        report["error"] = str(exc)
        rc = 2
    except ReconcileError as exc:
        report["error"] = str(exc)
        rc = 1
    _write_json_report(out_dir / "conflicts_latest.json", report)
    print(f"{ARGO_WORKFLOW_CRD}: {report['signal'] or 'unknown'}")
    if report["error"]:
        print(f"ERROR: {report['error']}", file=sys.stderr)
    return rc


def cmd_render_params(args: argparse.Namespace) -> int:
    path = Path(args.path)
    try:
        result = apply_params(path, IMAGE_PARAM_MAP)
    except (OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


def _collect_doctor_checks(manifest_root: Path) -> tuple[list[dict], bool]:
    kubectl_override = str(os.environ.get("KUBECTL", "")).strip()
    kubectl_path = (
        shutil.which(kubectl_override) if kubectl_override else shutil.which("kubectl")
    )
    checks = [
        {
            "label": "kubectl present",
            "ok": bool(kubectl_path),
            "hint": "Install kubectl and add it to PATH, or set KUBECTL.",
        },
        {
            "label": f"manifests root {manifest_root}",
            "ok": manifest_root.is_dir(),
            "hint": "Set DSPK_MANIFESTS_PATH or pass --manifests-path.",
        },
    ]
    return checks, all(bool(check["ok"]) for check in checks)


def cmd_doctor(args: argparse.Namespace) -> int:
    checks, ok = _collect_doctor_checks(_manifest_root_from_args(args))
    for check in checks:
        if check["ok"]:
            print(f"PASS {check['label']}")
            continue
        print(f"FAIL {check['label']}")
        print(f"  hint: {check['hint']}")

    if not ok:
        print("Doctor result: FAIL")
        return 2
    print("Doctor result: PASS")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dspk")
    parser.add_argument("--version", action="version", version=f"dspkeeper {DSPK_VERSION}")

    sub = parser.add_subparsers(dest="command", required=True)

    reconcile = sub.add_parser("reconcile", help="Run one reconcile pass for data science pipelines")
    reconcile.add_argument("--config", required=True, help="Platform document (YAML or JSON)")
    reconcile.add_argument("--out", default="report/_reconcile", help="Output directory")
    reconcile.add_argument("--manifests-path", help="Manifest root (default: $DSPK_MANIFESTS_PATH or /opt/manifests)")
    reconcile.add_argument("--ready-attempts", type=int, default=None, help="Readiness poll attempts")
    reconcile.add_argument("--ready-interval", type=float, default=None, help="Seconds between readiness polls")
    reconcile.set_defaults(func=cmd_reconcile)

    conflicts = sub.add_parser("conflicts", help="Check for a foreign Argo Workflow CRD")
    conflicts.add_argument("--out", default="report/_conflicts", help="Output directory")
    conflicts.set_defaults(func=cmd_conflicts)

    render = sub.add_parser("render-params", help="Inject RELATED_IMAGE_* values into params.env")
    render.add_argument("--path", required=True, help="Directory containing params.env")
    render.set_defaults(func=cmd_render_params)

    doctor = sub.add_parser("doctor", help="Check local prerequisites")
    doctor.add_argument("--manifests-path", help="Manifest root to check")
    doctor.set_defaults(func=cmd_doctor)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
