"""Guard against a foreign Argo Workflows installation owning the shared CRD."""

from __future__ import annotations

from enum import Enum

from dspkeeper.errors import ArgoWorkflowConflictError
from dspkeeper.k8s.labels import component_label

ARGO_WORKFLOW_CRD = "workflows.argoproj.io"
CRD_KIND = "customresourcedefinition"


class ConflictSignal(str, Enum):
    NONE = "none"
    OWNED = "owned"


def conflict_message(crd_name: str = ARGO_WORKFLOW_CRD) -> str:
    return (
        f"{crd_name} CRD already exists but not deployed by this operator. "
        "Remove existing Argo workflows or set "
        "`spec.components.datasciencepipelines.managementState` to Removed to proceed"
    )


def check_argo_workflow_conflict(client: object, component: str) -> ConflictSignal:
    """Classify the current owner of the Argo Workflow CRD.

    Lookup errors other than not-found propagate from the client as
    ClusterAPIError. The check and the later apply are not atomic; another
    actor can still create the CRD in between.
    """
    crd = client.get_cluster_resource(CRD_KIND, ARGO_WORKFLOW_CRD)
    if crd is None:
        return ConflictSignal.NONE
    metadata = crd.get("metadata") if isinstance(crd.get("metadata"), dict) else {}
    labels = metadata.get("labels") if isinstance(metadata.get("labels"), dict) else {}
    if labels.get(component_label(component)) == "true":
        return ConflictSignal.OWNED
    raise ArgoWorkflowConflictError(
        conflict_message(ARGO_WORKFLOW_CRD),
        component=component,
        crd_name=ARGO_WORKFLOW_CRD,
    )
