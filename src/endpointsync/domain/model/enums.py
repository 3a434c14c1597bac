"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Availability(StrEnum):
    """Interface under which an endpoint is registered in the identity service."""

    PUBLIC = "public"
    INTERNAL = "internal"
    ADMIN = "admin"


class Lifecycle(StrEnum):
    ACTIVE = "active"
    TERMINATING = "terminating"


class ConditionType(StrEnum):
    READY = "Ready"
    KEYSTONE_API_READY = "KeystoneAPIReady"
    ADMIN_SERVICE_CLIENT_READY = "AdminServiceClientReady"
    KEYSTONE_SERVICE_OS_ENDPOINTS_READY = "KeystoneServiceOSEndpointsReady"
    KEYSTONE_SERVICE_READY = "KeystoneServiceReady"


class ConditionStatus(StrEnum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ConditionReason(StrEnum):
    INIT = "Init"
    REQUESTED = "Requested"
    ERROR = "Error"
    READY = "Ready"


class Severity(StrEnum):
    """Severity of a ``False`` condition; ``NONE`` for every other status."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    NONE = ""
