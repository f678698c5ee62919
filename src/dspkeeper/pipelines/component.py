"""Reconcile pass for the data science pipelines component."""

from __future__ import annotations

import os
from pathlib import Path

from dspkeeper.audit.explain import ExplainLog
from dspkeeper.core.model import ComponentDescriptor, ManifestLocation, PlatformContext
from dspkeeper.deploy.params import IMAGE_PARAM_MAP
from dspkeeper.errors import ArgoWorkflowConflictError, ReadinessTimeoutError, ReconcileError
from dspkeeper.monitoring.prometheus import prometheus_apps_path, prometheus_config_path, update_prometheus_config
from dspkeeper.pipelines.conflicts import check_argo_workflow_conflict
from dspkeeper.status.conditions import (
    ARGO_WORKFLOW_EXIST,
    RECONCILE_COMPLETED,
    RECONCILE_FAILED,
    STATUS_FALSE,
    STATUS_TRUE,
    Condition,
    set_component_condition,
    set_existing_argo_condition,
)

COMPONENT_NAME = "data-science-pipelines-operator"
PROMETHEUS_COMPONENT = "prometheus"

# 20s interval for up to two minutes, first poll immediate.
_DEFAULT_READY_ATTEMPTS = 7
_DEFAULT_READY_INTERVAL_S = 20.0


def _parse_env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


def _parse_env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        return default
    return value if value >= 0 else default


class DataSciencePipelines:
    """One reconcile unit. ``client`` provides the cluster collaborators.

    Nothing on the instance changes between passes except ``conditions``;
    the manifest location is computed per call and passed down explicitly.
    """

    name = COMPONENT_NAME

    def __init__(
        self,
        descriptor: ComponentDescriptor,
        client: object,
        *,
        explain: ExplainLog | None = None,
        conditions: list[Condition] | None = None,
        ready_attempts: int | None = None,
        ready_interval_s: float | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.client = client
        self.explain = (explain or ExplainLog()).bind(self.name)
        self.conditions: list[Condition] = conditions if conditions is not None else []
        self.ready_attempts = (
            ready_attempts if ready_attempts is not None
            else _parse_env_int("DSPK_READY_ATTEMPTS", _DEFAULT_READY_ATTEMPTS)
        )
        self.ready_interval_s = (
            ready_interval_s if ready_interval_s is not None
            else _parse_env_float("DSPK_READY_INTERVAL_S", _DEFAULT_READY_INTERVAL_S)
        )

    def component_root(self, context: PlatformContext) -> Path:
        return Path(context.manifest_root) / self.name

    def base_location(self, context: PlatformContext) -> ManifestLocation:
        return ManifestLocation(path=self.component_root(context) / "base", overlay="base")

    def overlay_location(self, context: PlatformContext) -> ManifestLocation:
        overlay = context.platform.overlay
        return ManifestLocation(path=self.component_root(context) / "overlays" / overlay, overlay=overlay)

    def override_location(self, context: PlatformContext) -> ManifestLocation | None:
        """Where a declared developer override lands, without fetching it."""
        config = self.descriptor.manifest_override
        if config is None:
            return None
        subpath = config.source_path or "base"
        return ManifestLocation(path=self.component_root(context) / subpath, overlay=subpath)

    def override_manifests(self, context: PlatformContext) -> ManifestLocation | None:
        """Fetch the developer override source, if one is declared."""
        location = self.override_location(context)
        if location is None:
            return None
        config = self.descriptor.manifest_override
        self.client.fetch_manifests(self.name, config, Path(context.manifest_root))
        self.explain.emit("manifests_fetched", {"uri": config.uri, "path": str(location.path)})
        return location

    def teardown_location(self, context: PlatformContext) -> ManifestLocation:
        """Remove through the tree an earlier enabled pass applied."""
        override = self.override_location(context)
        if override is not None and override.path.is_dir():
            return override
        return self.overlay_location(context)

    def resolve_manifest_location(self, context: PlatformContext) -> ManifestLocation:
        override = self.override_manifests(context)
        if override is not None:
            return override
        return self.overlay_location(context)

    def init(self, location: ManifestLocation) -> dict | None:
        """Inject image references. Best effort: failures are logged only."""
        try:
            result = self.client.apply_image_params(location.path, IMAGE_PARAM_MAP)
        except (OSError, ValueError) as exc:
            self.explain.emit("image_params_failed", {"path": str(location.path), "error": str(exc)})
            return None
        self.explain.emit("image_params_applied", result)
        return result

    def reconcile(self, context: PlatformContext) -> None:
        enabled = self.descriptor.enabled
        monitoring_enabled = context.monitoring.enabled
        self.explain.emit(
            "reconcile_start",
            {
                "enabled": enabled,
                "platform": context.platform.value,
                "namespace": context.applications_namespace,
            },
        )
        try:
            self._reconcile(context, enabled=enabled, monitoring_enabled=monitoring_enabled)
        except ArgoWorkflowConflictError as exc:
            set_existing_argo_condition(self.conditions, self.name, ARGO_WORKFLOW_EXIST, str(exc))
            self.explain.emit("reconcile_failed", {"kind": "conflict", "error": str(exc)})
            raise
        except ReconcileError as exc:
            if exc.component is None:
                exc.component = self.name
            set_component_condition(self.conditions, self.name, RECONCILE_FAILED, str(exc), STATUS_FALSE)
            self.explain.emit("reconcile_failed", {"kind": type(exc).__name__, "error": str(exc)})
            raise
        set_component_condition(
            self.conditions,
            self.name,
            RECONCILE_COMPLETED,
            "Component reconciled successfully",
            STATUS_TRUE,
        )
        self.explain.emit("reconcile_done", {"enabled": enabled})

    def _reconcile(self, context: PlatformContext, *, enabled: bool, monitoring_enabled: bool) -> None:
        override: ManifestLocation | None = None
        if enabled:
            if self.descriptor.manifest_override is not None:
                override = self.override_manifests(context)
            self.init(override or self.base_location(context))
            signal = check_argo_workflow_conflict(self.client, self.name)
            self.explain.emit("conflict_check", {"signal": signal.value})

        if enabled:
            location = override or self.overlay_location(context)
        else:
            location = self.teardown_location(context)
        namespace = context.applications_namespace
        result = self.client.apply_or_remove(location.path, namespace, self.name, enabled)
        self.explain.emit(
            "manifests_applied",
            {"path": str(location.path), "overlay": location.overlay, "active": enabled, "result": result},
        )

        if enabled:
            try:
                attempts = self.client.wait_for_availability(
                    self.name, namespace, self.ready_attempts, self.ready_interval_s
                )
            except ReadinessTimeoutError as exc:
                raise ReadinessTimeoutError(
                    f"deployment for {self.name} is not ready to serve: {exc}",
                    component=self.name,
                    namespace=namespace,
                ) from exc
            self.explain.emit("readiness_wait", {"namespace": namespace, "attempts": attempts})

        if context.platform.is_managed_service:
            self.update_monitoring(context, enabled and monitoring_enabled)

    def update_monitoring(self, context: PlatformContext, active: bool) -> None:
        root = Path(context.manifest_root)
        changed = update_prometheus_config(prometheus_config_path(root), active, self.name)
        self.client.apply_or_remove(
            prometheus_apps_path(root),
            context.monitoring.namespace,
            PROMETHEUS_COMPONENT,
            True,
        )
        self.explain.emit(
            "monitoring_updated",
            {"active": active, "changed": changed, "namespace": context.monitoring.namespace},
        )


def reconcile(
    descriptor: ComponentDescriptor,
    context: PlatformContext,
    client: object,
    *,
    explain: ExplainLog | None = None,
    conditions: list[Condition] | None = None,
) -> None:
    DataSciencePipelines(descriptor, client, explain=explain, conditions=conditions).reconcile(context)
