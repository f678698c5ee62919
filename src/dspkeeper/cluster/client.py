"""kubectl-backed collaborators used by a reconcile pass.

Tests substitute any object with the same methods.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from pathlib import Path

from dspkeeper.audit.explain import ExplainLog
from dspkeeper.cluster.readiness import wait_for_deployment_available
from dspkeeper.core.model import ManifestsConfig
from dspkeeper.deploy.fetch import download_manifests
from dspkeeper.deploy.manifests import deploy_manifests_from_path
from dspkeeper.deploy.params import apply_params
from dspkeeper.errors import ClusterAPIError
from dspkeeper.k8s.kubectl import describe_failure, is_not_found, kubectl, parse_json_stdout, resolve_kubectl


class ClusterClient:
    def __init__(
        self,
        kubectl_bin: str | None = None,
        *,
        explain: ExplainLog | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.kubectl_bin = resolve_kubectl(kubectl_bin)
        self.explain = explain or ExplainLog()
        self._sleep = sleep

    def apply_image_params(self, path: Path, mapping: Mapping[str, str]) -> dict:
        return apply_params(path, mapping, explain=self.explain)

    def fetch_manifests(self, component: str, config: ManifestsConfig, manifest_root: Path) -> Path:
        return download_manifests(component, config, manifest_root)

    def apply_or_remove(self, path: Path, namespace: str, component: str, active: bool) -> dict:
        return deploy_manifests_from_path(path, namespace, component, active, kubectl_bin=self.kubectl_bin)

    def wait_for_availability(self, component: str, namespace: str, max_attempts: int, interval_s: float) -> int:
        return wait_for_deployment_available(
            component,
            namespace,
            max_attempts,
            interval_s,
            kubectl_bin=self.kubectl_bin,
            sleep=self._sleep,
        )

    def get_cluster_resource(self, kind: str, name: str) -> dict | None:
        """Fetch a cluster-scoped object. None when it does not exist."""
        res = kubectl(["get", kind, name, "-o", "json"], kubectl_bin=self.kubectl_bin)
        if res["ok"]:
            payload = parse_json_stdout(res)
            if payload is None:
                raise ClusterAPIError(f"failed to get {kind}/{name}: invalid json")
            return payload
        if is_not_found(res, name):
            return None
        raise ClusterAPIError(f"failed to get {kind}/{name}: {describe_failure(res)}")

