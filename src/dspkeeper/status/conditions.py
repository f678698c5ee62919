from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

CAPABILITY_DSP_V2_ARGO = "CapabilityDSPv2Argo"
ARGO_WORKFLOW_EXIST = "ArgoWorkflowExist"
RECONCILE_FAILED = "ReconcileFailed"
RECONCILE_COMPLETED = "ReconcileCompleted"

STATUS_TRUE = "True"
STATUS_FALSE = "False"


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class Condition:
    type: str
    status: str
    reason: str
    message: str
    last_transition_time: str = ""

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "status": self.status,
            "reason": self.reason,
            "message": self.message,
            "lastTransitionTime": self.last_transition_time,
        }


def set_condition(conditions: list[Condition], type_: str, reason: str, message: str, status: str) -> Condition:
    """Replace the condition of the same type, or append a new one.

    The transition time only moves when the status flips.
    """
    for existing in conditions:
        if existing.type != type_:
            continue
        if existing.status != status:
            existing.last_transition_time = _now()
        existing.status = status
        existing.reason = reason
        existing.message = message
        return existing
    condition = Condition(type=type_, status=status, reason=reason, message=message, last_transition_time=_now())
    conditions.append(condition)
    return condition


def set_component_condition(
    conditions: list[Condition], component: str, reason: str, message: str, status: str
) -> Condition:
    return set_condition(conditions, f"{component}Ready", reason, message, status)


def set_existing_argo_condition(conditions: list[Condition], component: str, reason: str, message: str) -> None:
    set_condition(conditions, CAPABILITY_DSP_V2_ARGO, reason, message, STATUS_FALSE)
    set_component_condition(conditions, component, RECONCILE_FAILED, message, STATUS_FALSE)
