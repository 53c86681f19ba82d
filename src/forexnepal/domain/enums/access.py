from enum import Enum


class AccessLevel(str, Enum):
    """Access level stored per API endpoint."""

    PUBLIC = "public"
    RESTRICTED = "restricted"
    DISABLED = "disabled"


class DenialReason(str, Enum):
    """Terminal denial states of the access gate."""

    DISABLED = "disabled"
    RESTRICTED_NO_MATCH = "restricted_no_match"
    QUOTA_EXCEEDED = "quota_exceeded"
    ENDPOINT_MISCONFIGURED = "endpoint_misconfigured"
