"""Usage ledger: append-only log of gated requests, used for hourly quotas."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forexnepal.db.repos.usage_log_repo import UsageLogRepo
from forexnepal.db.session import session_scope

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UsageLedger:
    """Counts are read-then-write; brief over-admission under concurrency is tolerated."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._pending: set[asyncio.Task] = set()

    async def count(self, identity: str, endpoint: str, since: datetime) -> int:
        async with self._session_factory() as session:
            return await UsageLogRepo(session).count_since(identity, endpoint, since)

    async def append(self, identity: str, endpoint: str, at: datetime, status_code: int = 200) -> None:
        async with session_scope(self._session_factory) as session:
            await UsageLogRepo(session).append(identity, endpoint, at, status_code)

    def append_in_background(self, identity: str, endpoint: str, at: datetime, status_code: int = 200) -> None:
        """Schedule an append without delaying the request."""
        task = asyncio.create_task(self._append_logged(identity, endpoint, at, status_code))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _append_logged(self, identity: str, endpoint: str, at: datetime, status_code: int) -> None:
        try:
            await self.append(identity, endpoint, at, status_code)
        except Exception:
            logger.error("Failed to log API usage for %s on %s", identity, endpoint, exc_info=True)

    async def drain(self) -> None:
        """Wait for scheduled appends (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def prune(self, retention: timedelta, now: datetime | None = None) -> int:
        cutoff = (now or utcnow()) - retention
        async with session_scope(self._session_factory) as session:
            deleted = await UsageLogRepo(session).prune_before(cutoff)
        logger.info("Pruned %d usage log rows older than %s", deleted, cutoff.isoformat())
        return deleted
