"""Image reference injection into kustomize ``params.env`` files."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dspkeeper.audit.explain import ExplainLog

PARAMS_FILE = "params.env"

IMAGE_PARAM_MAP: dict[str, str] = {
    "IMAGES_DSPO": "RELATED_IMAGE_ODH_DATA_SCIENCE_PIPELINES_OPERATOR_CONTROLLER_IMAGE",
    "IMAGES_APISERVER": "RELATED_IMAGE_ODH_ML_PIPELINES_API_SERVER_V2_IMAGE",
    "IMAGES_PERSISTENCEAGENT": "RELATED_IMAGE_ODH_ML_PIPELINES_PERSISTENCEAGENT_V2_IMAGE",
    "IMAGES_SCHEDULEDWORKFLOW": "RELATED_IMAGE_ODH_ML_PIPELINES_SCHEDULEDWORKFLOW_V2_IMAGE",
    "IMAGES_ARGO_EXEC": "RELATED_IMAGE_ODH_DATA_SCIENCE_PIPELINES_ARGO_ARGOEXEC_IMAGE",
    "IMAGES_ARGO_WORKFLOWCONTROLLER": "RELATED_IMAGE_ODH_DATA_SCIENCE_PIPELINES_ARGO_WORKFLOWCONTROLLER_IMAGE",
    "IMAGES_DRIVER": "RELATED_IMAGE_ODH_ML_PIPELINES_DRIVER_IMAGE",
    "IMAGES_LAUNCHER": "RELATED_IMAGE_ODH_ML_PIPELINES_LAUNCHER_IMAGE",
    "IMAGES_MLMDGRPC": "RELATED_IMAGE_ODH_MLMD_GRPC_SERVER_IMAGE",
}


def read_params(path: Path) -> dict[str, str]:
    params: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        key, sep, value = line.partition("=")
        if sep and key.strip():
            params[key.strip()] = value
    return params


def write_params(path: Path, params: Mapping[str, str]) -> None:
    backup = path.with_name(path.name + ".bak")
    path.replace(backup)
    try:
        path.write_text(
            "".join(f"{key}={value}\n" for key, value in params.items()),
            encoding="utf-8",
        )
    except BaseException:
        backup.replace(path)
        raise
    backup.unlink()


def resolve_images(
    image_param_map: Mapping[str, str],
    *,
    environ: Mapping[str, str] | None = None,
) -> tuple[dict[str, str], list[str]]:
    """Map slot names to image references, listing slots whose variable is unset."""
    env = os.environ if environ is None else environ
    resolved: dict[str, str] = {}
    missing: list[str] = []
    for slot, env_name in image_param_map.items():
        value = (env.get(env_name) or "").strip()
        if value:
            resolved[slot] = value
        else:
            missing.append(slot)
    return resolved, missing


def apply_params(
    component_path: Path,
    image_param_map: Mapping[str, str],
    extra_params: Mapping[str, str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    explain: ExplainLog | None = None,
) -> dict:
    """Rewrite ``params.env`` under ``component_path`` with resolved images.

    Only keys already present in the file are touched. A missing file is a
    no-op. Slots whose environment variable is unset keep their current value
    and are reported as missing.
    """
    params_path = Path(component_path) / PARAMS_FILE
    result: dict = {"path": str(params_path), "updated": [], "missing": []}
    if not params_path.is_file():
        return result

    params = read_params(params_path)
    resolved, _ = resolve_images(image_param_map, environ=environ)
    for key in params:
        if key in resolved:
            if params[key] != resolved[key]:
                params[key] = resolved[key]
                result["updated"].append(key)
        elif key in image_param_map:
            result["missing"].append(key)
            if explain is not None:
                explain.emit(
                    "image_param_missing",
                    {"slot": key, "env": image_param_map[key], "path": str(params_path)},
                )
    for key, value in (extra_params or {}).items():
        if key in params and params[key] != value:
            params[key] = value
            result["updated"].append(key)

    write_params(params_path, params)
    return result
