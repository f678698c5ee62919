"""Render a kustomize directory and apply or remove its objects."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from dspkeeper.errors import ManifestApplyError
from dspkeeper.k8s.kubectl import describe_failure, kubectl
from dspkeeper.k8s.labels import PART_OF, component_label

CLUSTER_SCOPED_KINDS = {
    "APIService",
    "ClusterRole",
    "ClusterRoleBinding",
    "CustomResourceDefinition",
    "MutatingWebhookConfiguration",
    "Namespace",
    "PersistentVolume",
    "PriorityClass",
    "SecurityContextConstraints",
    "StorageClass",
    "ValidatingWebhookConfiguration",
}


def load_yaml_documents(text: str) -> list[dict[str, Any]]:
    docs: list[dict[str, Any]] = []
    for doc in yaml.safe_load_all(text):
        if isinstance(doc, dict) and doc:
            docs.append(doc)
    return docs


def dump_yaml_documents(docs: list[dict[str, Any]]) -> str:
    return yaml.safe_dump_all(docs, sort_keys=False, explicit_start=True)


def render_kustomize(path: Path, *, kubectl_bin: str | None = None) -> list[dict[str, Any]]:
    res = kubectl(["kustomize", str(path)], kubectl_bin=kubectl_bin)
    if not res["ok"]:
        raise ManifestApplyError(f"failed to render manifests at {path}: {describe_failure(res)}")
    try:
        return load_yaml_documents(res.get("stdout") or "")
    except yaml.YAMLError as exc:
        raise ManifestApplyError(f"invalid YAML rendered from {path}: {exc}") from exc


def stamp_objects(docs: list[dict[str, Any]], *, namespace: str, component: str) -> list[dict[str, Any]]:
    """Set the target namespace on namespaced kinds and add ownership labels."""
    stamped: list[dict[str, Any]] = []
    for doc in docs:
        metadata = doc.setdefault("metadata", {})
        if not isinstance(metadata, dict):
            raise ManifestApplyError(f"object {doc.get('kind')} has invalid metadata")
        if doc.get("kind") not in CLUSTER_SCOPED_KINDS:
            metadata["namespace"] = namespace
        labels = metadata.get("labels")
        if not isinstance(labels, dict):
            labels = {}
        labels[component_label(component)] = "true"
        labels[PART_OF] = component
        metadata["labels"] = labels
        stamped.append(doc)
    return stamped


def deploy_manifests_from_path(
    path: Path,
    namespace: str,
    component: str,
    active: bool,
    *,
    kubectl_bin: str | None = None,
) -> dict:
    """Apply the rendered objects when ``active``; delete them otherwise.

    Removal of a directory that no longer exists is a no-op so that a
    disabled component with no manifests on disk still converges.
    """
    path = Path(path)
    if not path.is_dir():
        if not active:
            return {"path": str(path), "action": "delete", "objects": 0}
        raise ManifestApplyError(f"manifests path does not exist: {path}", component=component)

    docs = stamp_objects(
        render_kustomize(path, kubectl_bin=kubectl_bin),
        namespace=namespace,
        component=component,
    )
    if not docs:
        return {"path": str(path), "action": "apply" if active else "delete", "objects": 0}

    if active:
        args = ["apply", "-f", "-"]
    else:
        args = ["delete", "--ignore-not-found", "--wait=false", "-f", "-"]
    res = kubectl(args, kubectl_bin=kubectl_bin, stdin=dump_yaml_documents(docs))
    if not res["ok"]:
        verb = "apply" if active else "remove"
        raise ManifestApplyError(
            f"failed to {verb} manifests for {component} from {path}: {describe_failure(res)}",
            component=component,
        )
    return {"path": str(path), "action": args[0], "objects": len(docs)}
