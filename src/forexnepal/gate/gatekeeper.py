"""AccessGatekeeper: per-endpoint access policy checked before every public API handler.

``check_access`` returns ``None`` to admit the request or an ``AccessDenial`` the
HTTP layer renders as ``{"error": ...}`` with the denial's status code.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Mapping, Optional
from urllib.parse import urlparse

from forexnepal.domain.enums import DenialReason
from forexnepal.gate.ledger import UsageLedger, utcnow
from forexnepal.gate.rules import DisabledRule, RestrictedRule, match_any, normalize_endpoint
from forexnepal.gate.settings_cache import AccessRuleCache

logger = logging.getLogger(__name__)

ANONYMOUS_PUBLIC = "public_ip"
ANONYMOUS_RESTRICTED = "unknown_ip"


def _hostname(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


@dataclass(frozen=True)
class RequestMeta:
    ip: Optional[str] = None
    origin: Optional[str] = None  # hostname taken from Origin, else Referer

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], client_host: Optional[str] = None) -> "RequestMeta":
        ip = headers.get("cf-connecting-ip") or client_host
        return cls(ip=ip, origin=_hostname(headers.get("origin")) or _hostname(headers.get("referer")))


@dataclass(frozen=True)
class AccessDenial:
    status: int
    error: str
    reason: DenialReason
    quota: Optional[int] = None

    @property
    def body(self) -> dict[str, str]:
        return {"error": self.error}


class AccessGatekeeper:
    def __init__(
        self,
        rules: AccessRuleCache,
        ledger: UsageLedger,
        *,
        quota_window_seconds: int = 3600,
        fail_open: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._rules = rules
        self._ledger = ledger
        self._window = timedelta(seconds=quota_window_seconds)
        self._fail_open = fail_open
        self._clock = clock

    @property
    def ledger(self) -> UsageLedger:
        return self._ledger

    async def check_access(self, path: str, request: RequestMeta) -> Optional[AccessDenial]:
        endpoint = normalize_endpoint(path)
        rule = await self._rules.get_rule(endpoint)

        if rule is None:
            if self._fail_open:
                logger.warning("No access rule configured for %s, allowing", endpoint)
                return None
            logger.warning("No access rule configured for %s, denying", endpoint)
            return AccessDenial(404, "This API endpoint is not available", DenialReason.ENDPOINT_MISCONFIGURED)

        now = self._clock()

        if isinstance(rule, DisabledRule):
            self._ledger.append_in_background(request.ip or ANONYMOUS_PUBLIC, endpoint, now, 403)
            return AccessDenial(403, "This API endpoint is disabled", DenialReason.DISABLED)

        if isinstance(rule, RestrictedRule):
            ip_ok = match_any(request.ip, rule.allow_list)
            origin_ok = match_any(request.origin, rule.allow_list)
            if not (ip_ok or origin_ok):
                logger.info("Denied %s for ip=%s origin=%s", endpoint, request.ip, request.origin)
                return AccessDenial(403, "Access denied. Invalid IP or domain.", DenialReason.RESTRICTED_NO_MATCH)
            # Quota follows the matching domain when there is one, else the IP
            identity = request.origin if origin_ok else (request.ip or ANONYMOUS_RESTRICTED)
        else:
            identity = request.ip or ANONYMOUS_PUBLIC

        if rule.quota_per_hour < 0:
            return None

        used = await self._ledger.count(identity, endpoint, now - self._window)
        if used >= rule.quota_per_hour:
            logger.info("Quota exceeded for %s on %s (%d/%d)", identity, endpoint, used, rule.quota_per_hour)
            return AccessDenial(
                429,
                f"Quota exceeded ({rule.quota_per_hour}/hr). Please try again later.",
                DenialReason.QUOTA_EXCEEDED,
                quota=rule.quota_per_hour,
            )

        self._ledger.append_in_background(identity, endpoint, now)
        return None
