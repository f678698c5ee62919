"""Toggle a component's alerting rules in the shared prometheus ConfigMap."""

from __future__ import annotations

from pathlib import Path

import yaml

from dspkeeper.errors import MonitoringError

PROMETHEUS_YML_KEY = "prometheus.yml"


def prometheus_apps_path(manifest_root: Path) -> Path:
    return Path(manifest_root) / "monitoring" / "prometheus" / "apps"


def prometheus_config_path(manifest_root: Path) -> Path:
    return prometheus_apps_path(manifest_root) / "prometheus-configs.yaml"


def rule_file_pattern(component: str) -> str:
    return f"{component}*.rules"


def toggle_rule_file(rule_files: list, component: str, enable: bool) -> list:
    target = rule_file_pattern(component)
    if enable:
        return rule_files if target in rule_files else [*rule_files, target]
    return [item for item in rule_files if item != target]


def update_prometheus_config(config_path: Path, enable: bool, component: str) -> bool:
    """Rewrite ``rule_files`` in the embedded prometheus.yml. Returns True if changed."""
    try:
        config_map = yaml.safe_load(Path(config_path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise MonitoringError(f"failed to read prometheus config {config_path}: {exc}", component=component) from exc
    except yaml.YAMLError as exc:
        raise MonitoringError(f"invalid YAML in {config_path}: {exc}", component=component) from exc

    data = config_map.get("data") if isinstance(config_map, dict) else None
    if not isinstance(data, dict) or not isinstance(data.get(PROMETHEUS_YML_KEY), str):
        raise MonitoringError(f"{config_path}: data.{PROMETHEUS_YML_KEY} is missing", component=component)

    try:
        prometheus = yaml.safe_load(data[PROMETHEUS_YML_KEY])
    except yaml.YAMLError as exc:
        raise MonitoringError(f"invalid {PROMETHEUS_YML_KEY} in {config_path}: {exc}", component=component) from exc
    rule_files = prometheus.get("rule_files") if isinstance(prometheus, dict) else None
    if not isinstance(rule_files, list):
        raise MonitoringError("failed to parse rule_files", component=component)

    updated = toggle_rule_file(rule_files, component, enable)
    if updated == rule_files:
        return False
    prometheus["rule_files"] = updated
    data[PROMETHEUS_YML_KEY] = yaml.safe_dump(prometheus, sort_keys=False)
    try:
        Path(config_path).write_text(yaml.safe_dump(config_map, sort_keys=False), encoding="utf-8")
    except OSError as exc:
        raise MonitoringError(f"failed to write prometheus config {config_path}: {exc}", component=component) from exc
    return True
