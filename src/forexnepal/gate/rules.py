"""Access rules as tagged variants, endpoint normalisation and allow-list matching."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from forexnepal.db.models.api_access import ApiAccessSetting
from forexnepal.domain.enums import AccessLevel

logger = logging.getLogger(__name__)

UNLIMITED = -1

# Dynamic path segments collapse to one rule key per route
_DYNAMIC_PREFIXES = {
    "/api/posts/": "/api/posts/:slug",
    "/api/rates/date/": "/api/rates/date/:date",
    "/api/archive/detail/": "/api/archive/detail/:date",
}


@dataclass(frozen=True)
class PublicRule:
    endpoint: str
    quota_per_hour: int = UNLIMITED

    level = AccessLevel.PUBLIC


@dataclass(frozen=True)
class RestrictedRule:
    endpoint: str
    allow_list: tuple[str, ...] = field(default_factory=tuple)
    quota_per_hour: int = UNLIMITED

    level = AccessLevel.RESTRICTED


@dataclass(frozen=True)
class DisabledRule:
    endpoint: str

    level = AccessLevel.DISABLED


AccessRule = Union[PublicRule, RestrictedRule, DisabledRule]


def normalize_endpoint(path: str) -> str:
    """Map a concrete request path to the key its access rule is stored under."""
    path = path.split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    for prefix, key in _DYNAMIC_PREFIXES.items():
        if path.startswith(prefix) and len(path) > len(prefix):
            return key
    return path


def matches_pattern(identifier: Optional[str], pattern: str) -> bool:
    """``*`` matches anything, ``*.example.com`` matches strict subdomains, anything else is literal."""
    if not identifier:
        return False
    identifier = identifier.strip().lower()
    pattern = pattern.strip().lower()
    if not pattern:
        return False
    if pattern == "*":
        return True
    if pattern.startswith("*."):
        return identifier.endswith(pattern[1:])
    return identifier == pattern


def match_any(identifier: Optional[str], patterns: Iterable[str]) -> bool:
    return any(matches_pattern(identifier, p) for p in patterns)


def _parse_allow_list(endpoint: str, raw: Any) -> tuple[str, ...]:
    if isinstance(raw, (list, tuple)):
        items = raw
    else:
        try:
            items = json.loads(raw or "[]")
        except (TypeError, ValueError):
            logger.warning("Malformed allow list for %s, treating as empty", endpoint)
            return ()
        if not isinstance(items, list):
            logger.warning("Allow list for %s is not a JSON array, treating as empty", endpoint)
            return ()
    return tuple(str(item).strip() for item in items if isinstance(item, str) and item.strip())


def build_rule(endpoint: str, access_level: str, allowed_rules: Any = "[]", quota_per_hour: Optional[int] = None) -> Optional[AccessRule]:
    """Build the tagged rule for a stored row; ``None`` for an unknown access level."""
    quota = UNLIMITED if quota_per_hour is None else int(quota_per_hour)
    try:
        level = AccessLevel(access_level)
    except ValueError:
        logger.warning("Unknown access level %r for %s", access_level, endpoint)
        return None
    if level == AccessLevel.DISABLED:
        return DisabledRule(endpoint=endpoint)
    if level == AccessLevel.RESTRICTED:
        return RestrictedRule(
            endpoint=endpoint, allow_list=_parse_allow_list(endpoint, allowed_rules), quota_per_hour=quota
        )
    return PublicRule(endpoint=endpoint, quota_per_hour=quota)


def rule_from_setting(setting: ApiAccessSetting) -> Optional[AccessRule]:
    return build_rule(setting.endpoint, setting.access_level, setting.allowed_rules, setting.quota_per_hour)


def rule_to_dict(rule: AccessRule) -> dict[str, Any]:
    data: dict[str, Any] = {"endpoint": rule.endpoint, "access_level": rule.level.value}
    if isinstance(rule, RestrictedRule):
        data["allowed_rules"] = list(rule.allow_list)
    if not isinstance(rule, DisabledRule):
        data["quota_per_hour"] = rule.quota_per_hour
    return data


def rule_from_dict(data: dict[str, Any]) -> Optional[AccessRule]:
    return build_rule(
        data["endpoint"], data.get("access_level", ""), data.get("allowed_rules", []), data.get("quota_per_hour")
    )
