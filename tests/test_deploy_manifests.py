import os
from pathlib import Path

import pytest
import yaml

from dspkeeper.deploy.manifests import deploy_manifests_from_path, stamp_objects
from dspkeeper.errors import ManifestApplyError

_RENDERED = """apiVersion: apiextensions.k8s.io/v1
kind: CustomResourceDefinition
metadata:
  name: workflows.argoproj.io
---
apiVersion: apps/v1
kind: Deployment
metadata:
  name: data-science-pipelines-operator-controller-manager
  namespace: somewhere-else
  labels:
    app: dspo
"""


def _fake_kubectl(tmp_path: Path, *, apply_rc: int = 0) -> Path:
    rendered = tmp_path / "rendered.yaml"
    rendered.write_text(_RENDERED, encoding="utf-8")
    kubectl = tmp_path / "kubectl"
    kubectl.write_text(
        f"""#!/usr/bin/env bash
set -Eeuo pipefail
echo "$*" >> "{tmp_path}/argv.log"

if [[ "$1" == "kustomize" ]]; then
  cat "{rendered}"
  exit 0
fi

if [[ "$1" == "apply" || "$1" == "delete" ]]; then
  cat > "{tmp_path}/stdin.yaml"
  if [[ "{apply_rc}" != "0" ]]; then
    echo 'error: unable to recognize "STDIN"' >&2
  fi
  exit {apply_rc}
fi

echo "unexpected args: $*" >&2
exit 1
""",
        encoding="utf-8",
    )
    kubectl.chmod(0o755)
    return kubectl


def _argv_log(tmp_path: Path) -> list[str]:
    return (tmp_path / "argv.log").read_text(encoding="utf-8").splitlines()


def test_stamp_objects_sets_namespace_and_labels() -> None:
    docs = yaml.safe_load_all(_RENDERED)
    stamped = stamp_objects(list(docs), namespace="ns1", component="dspo")

    crd, deployment = stamped
    assert "namespace" not in crd["metadata"]
    assert crd["metadata"]["labels"] == {"app.opendatahub.io/dspo": "true", "app.kubernetes.io/part-of": "dspo"}
    assert deployment["metadata"]["namespace"] == "ns1"
    assert deployment["metadata"]["labels"]["app"] == "dspo"
    assert deployment["metadata"]["labels"]["app.opendatahub.io/dspo"] == "true"


def test_deploy_applies_stamped_objects(tmp_path: Path) -> None:
    kubectl = _fake_kubectl(tmp_path)
    overlay = tmp_path / "overlays" / "odh"
    overlay.mkdir(parents=True)

    result = deploy_manifests_from_path(overlay, "ns1", "dspo", True, kubectl_bin=str(kubectl))

    assert result == {"path": str(overlay), "action": "apply", "objects": 2}
    assert _argv_log(tmp_path) == [f"kustomize {overlay}", "apply -f -"]
    applied = list(yaml.safe_load_all((tmp_path / "stdin.yaml").read_text(encoding="utf-8")))
    assert applied[1]["metadata"]["namespace"] == "ns1"


def test_deploy_inactive_deletes_same_objects(tmp_path: Path) -> None:
    kubectl = _fake_kubectl(tmp_path)
    overlay = tmp_path / "overlays" / "odh"
    overlay.mkdir(parents=True)

    result = deploy_manifests_from_path(overlay, "ns1", "dspo", False, kubectl_bin=str(kubectl))

    assert result["action"] == "delete"
    assert _argv_log(tmp_path)[-1] == "delete --ignore-not-found --wait=false -f -"
    removed = list(yaml.safe_load_all((tmp_path / "stdin.yaml").read_text(encoding="utf-8")))
    assert [doc["kind"] for doc in removed] == ["CustomResourceDefinition", "Deployment"]


def test_deploy_inactive_missing_path_is_noop(tmp_path: Path) -> None:
    kubectl = _fake_kubectl(tmp_path)

    result = deploy_manifests_from_path(tmp_path / "gone", "ns1", "dspo", False, kubectl_bin=str(kubectl))

    assert result["objects"] == 0
    assert not (tmp_path / "argv.log").exists()


def test_deploy_active_missing_path_fails(tmp_path: Path) -> None:
    with pytest.raises(ManifestApplyError):
        deploy_manifests_from_path(tmp_path / "gone", "ns1", "dspo", True, kubectl_bin="kubectl")


def test_deploy_apply_failure_carries_stderr(tmp_path: Path) -> None:
    kubectl = _fake_kubectl(tmp_path, apply_rc=1)
    overlay = tmp_path / "overlay"
    overlay.mkdir()

    with pytest.raises(ManifestApplyError) as excinfo:
        deploy_manifests_from_path(overlay, "ns1", "dspo", True, kubectl_bin=str(kubectl))
    assert "unable to recognize" in str(excinfo.value)
    assert excinfo.value.component == "dspo"


def test_deploy_uses_kubectl_env(tmp_path: Path, monkeypatch) -> None:
    kubectl = _fake_kubectl(tmp_path)
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    monkeypatch.setenv("KUBECTL", str(kubectl))

    deploy_manifests_from_path(overlay, "ns1", "dspo", True)

    assert os.path.exists(tmp_path / "stdin.yaml")
