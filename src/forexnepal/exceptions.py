"""Exception hierarchy for rate lookups and request throttling.

Access-gate denials are *not* exceptions; see ``forexnepal.gate.gatekeeper.AccessDenial``.
"""

from datetime import date


class ForexNepalError(Exception):
    """Base class for all errors raised by this package."""


class ExternalServiceError(ForexNepalError):
    """A third-party service misbehaved."""


class UpstreamError(ExternalServiceError):
    """The upstream rate publisher failed to answer a range request."""

    kind = "upstream_error"


class UpstreamTimeout(UpstreamError):
    kind = "timeout"


class UpstreamUnavailable(UpstreamError):
    """Connection to the upstream could not be established."""

    kind = "unavailable"


class UpstreamBadResponse(UpstreamError):
    """Non-2xx status or a payload that could not be parsed."""

    def __init__(self, message: str, status_code: int | None = None, malformed: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.malformed = malformed

    @property
    def kind(self) -> str:  # type: ignore[override]
        return "malformed_payload" if self.malformed else "bad_status"


class ChunkFetchError(ForexNepalError):
    """An upstream chunk failed; the whole multi-chunk fetch is aborted."""

    def __init__(self, chunk_index: int, total_chunks: int, start: date, end: date, cause: UpstreamError) -> None:
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks
        self.start = start
        self.end = end
        self.cause = cause
        super().__init__(
            f"Chunk {chunk_index + 1}/{total_chunks} ({start.isoformat()}..{end.isoformat()}) "
            f"failed [{cause.kind}]: {cause}"
        )

    @property
    def kind(self) -> str:
        return self.cause.kind


class StoreTimeout(ForexNepalError):
    """The rate store did not answer in time. Always recovered by falling back upstream."""


class InvalidDateRange(ForexNepalError, ValueError):
    def __init__(self, start: date, end: date, reason: str = "start date must not be after end date") -> None:
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range {start.isoformat()}..{end.isoformat()}: {reason}")


class UnknownCurrency(ForexNepalError, ValueError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Unknown currency: {code}")


class RateLimitExceeded(ForexNepalError):
    """Chart request throttled; retry after ``cooldown_seconds``."""

    def __init__(self, reason: str, cooldown_seconds: int) -> None:
        self.reason = reason
        self.cooldown_seconds = cooldown_seconds
        super().__init__(reason)


class FetchCancelled(ForexNepalError):
    """The caller cancelled a historical fetch between chunks."""
