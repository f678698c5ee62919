from pathlib import Path

import pytest
import yaml

from dspkeeper.errors import MonitoringError
from dspkeeper.monitoring.prometheus import prometheus_config_path, toggle_rule_file, update_prometheus_config


def _rule_files(path: Path) -> list:
    config_map = yaml.safe_load(path.read_text(encoding="utf-8"))
    return yaml.safe_load(config_map["data"]["prometheus.yml"])["rule_files"]


def test_enable_appends_component_rules_once(manifest_root: Path) -> None:
    path = prometheus_config_path(manifest_root)

    assert update_prometheus_config(path, True, "dspo") is True
    assert update_prometheus_config(path, True, "dspo") is False

    assert _rule_files(path) == ["operator-recording.rules", "dspo*.rules"]
    config_map = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert config_map["kind"] == "ConfigMap"
    assert yaml.safe_load(config_map["data"]["prometheus.yml"])["global"] == {"scrape_interval": "30s"}


def test_disable_removes_component_rules(manifest_root: Path) -> None:
    path = prometheus_config_path(manifest_root)
    update_prometheus_config(path, True, "dspo")

    assert update_prometheus_config(path, False, "dspo") is True
    assert _rule_files(path) == ["operator-recording.rules"]


def test_missing_rule_files_is_an_error(tmp_path: Path) -> None:
    path = tmp_path / "prometheus-configs.yaml"
    path.write_text(
        "kind: ConfigMap\ndata:\n  prometheus.yml: |\n    global: {}\n",
        encoding="utf-8",
    )
    with pytest.raises(MonitoringError, match="rule_files"):
        update_prometheus_config(path, True, "dspo")


def test_missing_config_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(MonitoringError):
        update_prometheus_config(tmp_path / "nope.yaml", True, "dspo")


def test_toggle_rule_file_leaves_other_entries() -> None:
    assert toggle_rule_file(["a.rules", "dspo*.rules", "b.rules"], "dspo", False) == ["a.rules", "b.rules"]
