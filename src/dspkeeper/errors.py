"""Exception types raised by a reconcile pass."""

from __future__ import annotations


class SpecValidationError(ValueError):
    """Raised when the platform document has an invalid shape."""


class ReconcileError(RuntimeError):
    """Base class for failures that abort a reconcile pass."""

    def __init__(self, message: str, *, component: str | None = None) -> None:
        super().__init__(message)
        self.component = component


class ClusterAPIError(ReconcileError):
    """Cluster lookup or mutation failed; the caller may retry the pass."""


class ManifestFetchError(ReconcileError):
    pass


class ManifestApplyError(ReconcileError):
    pass


class ArgoWorkflowConflictError(ReconcileError):
    """A foreign installation already owns the Argo Workflow CRD."""

    def __init__(self, message: str, *, component: str | None = None, crd_name: str) -> None:
        super().__init__(message, component=component)
        self.crd_name = crd_name


class ReadinessTimeoutError(ReconcileError):
    def __init__(self, message: str, *, component: str | None = None, namespace: str) -> None:
        super().__init__(message, component=component)
        self.namespace = namespace


class MonitoringError(ReconcileError):
    pass
