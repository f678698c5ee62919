from __future__ import annotations

from enum import Enum


class ManagementState(str, Enum):
    MANAGED = "Managed"
    REMOVED = "Removed"

    @classmethod
    def parse(cls, value: object) -> "ManagementState":
        if isinstance(value, ManagementState):
            return value
        text = str(value or "").strip().lower()
        if text == "managed":
            return cls.MANAGED
        return cls.REMOVED


class Platform(str, Enum):
    """Distribution flavour of the target cluster.

    UNKNOWN covers an unset or unrecognised tag and deploys the community
    overlay, so a missing tag never disables deployment.
    """

    OPEN_DATA_HUB = "Open Data Hub"
    SELF_MANAGED_RHOAI = "OpenShift AI Self-Managed"
    MANAGED_RHOAI = "OpenShift AI Cloud Service"
    UNKNOWN = ""

    @classmethod
    def parse(cls, value: object) -> "Platform":
        if isinstance(value, Platform):
            return value
        text = str(value or "").strip()
        for item in cls:
            if item.value and item.value.lower() == text.lower():
                return item
        return cls.UNKNOWN

    @property
    def overlay(self) -> str:
        if self in (Platform.OPEN_DATA_HUB, Platform.UNKNOWN):
            return "odh"
        return "rhoai"

    @property
    def is_managed_service(self) -> bool:
        return self is Platform.MANAGED_RHOAI
