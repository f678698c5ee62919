from dspkeeper.pipelines.component import COMPONENT_NAME, DataSciencePipelines, reconcile
from dspkeeper.pipelines.conflicts import ARGO_WORKFLOW_CRD, ConflictSignal, check_argo_workflow_conflict

__all__ = [
    "ARGO_WORKFLOW_CRD",
    "COMPONENT_NAME",
    "ConflictSignal",
    "DataSciencePipelines",
    "check_argo_workflow_conflict",
    "reconcile",
]
