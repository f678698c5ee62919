from __future__ import annotations

import time
from collections.abc import Callable

from dspkeeper.errors import ClusterAPIError, ReadinessTimeoutError
from dspkeeper.k8s.kubectl import describe_failure, kubectl, parse_json_stdout
from dspkeeper.k8s.labels import component_label


def _to_int(value: object) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def pending_deployments(payload: dict) -> list[str]:
    """Names of deployments whose ready replicas lag the desired count."""
    pending: list[str] = []
    for item in payload.get("items", []):
        if not isinstance(item, dict):
            continue
        metadata = item.get("metadata") if isinstance(item.get("metadata"), dict) else {}
        status = item.get("status") if isinstance(item.get("status"), dict) else {}
        if _to_int(status.get("readyReplicas")) != _to_int(status.get("replicas")):
            pending.append(str(metadata.get("name") or "<unknown>"))
    return pending


def list_component_deployments(component: str, namespace: str, *, kubectl_bin: str | None = None) -> dict:
    res = kubectl(
        ["-n", namespace, "get", "deployments", "-l", component_label(component), "-o", "json"],
        kubectl_bin=kubectl_bin,
    )
    if not res["ok"]:
        raise ClusterAPIError(
            f"error fetching list of deployments: {describe_failure(res)}",
            component=component,
        )
    payload = parse_json_stdout(res)
    if payload is None:
        raise ClusterAPIError("error fetching list of deployments: invalid json", component=component)
    return payload


def wait_for_deployment_available(
    component: str,
    namespace: str,
    max_attempts: int,
    interval_s: float,
    *,
    kubectl_bin: str | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll until every labelled deployment is ready. Returns the attempt count used."""
    pending: list[str] = []
    attempts = max(1, int(max_attempts))
    for attempt in range(1, attempts + 1):
        payload = list_component_deployments(component, namespace, kubectl_bin=kubectl_bin)
        pending = pending_deployments(payload)
        if not pending:
            return attempt
        if attempt < attempts:
            sleep(interval_s)
    raise ReadinessTimeoutError(
        f"timed out after {attempts} attempts waiting for deployments in namespace {namespace}: "
        + ", ".join(sorted(pending)),
        component=component,
        namespace=namespace,
    )
