from __future__ import annotations

ODH_PREFIX = "app.opendatahub.io/"
PART_OF = "app.kubernetes.io/part-of"


def component_label(component: str) -> str:
    return f"{ODH_PREFIX}{component}"
