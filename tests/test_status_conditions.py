from dspkeeper.status.conditions import (
    Condition,
    set_component_condition,
    set_condition,
    set_existing_argo_condition,
)


def test_set_condition_replaces_same_type() -> None:
    conditions: list[Condition] = []
    set_condition(conditions, "Available", "Init", "starting", "False")
    first_time = conditions[0].last_transition_time

    set_condition(conditions, "Available", "StillInit", "still starting", "False")

    assert len(conditions) == 1
    assert conditions[0].reason == "StillInit"
    assert conditions[0].last_transition_time == first_time


def test_set_component_condition_uses_ready_suffix() -> None:
    conditions: list[Condition] = []
    set_component_condition(conditions, "dspo", "ReconcileCompleted", "ok", "True")
    assert conditions[0].to_dict()["type"] == "dspoReady"
    assert conditions[0].to_dict()["status"] == "True"


def test_existing_argo_condition_marks_capability_and_component() -> None:
    conditions: list[Condition] = []
    set_existing_argo_condition(conditions, "dspo", "ArgoWorkflowExist", "foreign CRD")

    assert [(c.type, c.status, c.reason) for c in conditions] == [
        ("CapabilityDSPv2Argo", "False", "ArgoWorkflowExist"),
        ("dspoReady", "False", "ReconcileFailed"),
    ]
