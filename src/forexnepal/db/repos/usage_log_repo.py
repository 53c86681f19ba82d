from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from forexnepal.db.models.api_access import ApiUsageLog


class UsageLogRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def count_since(self, identifier: str, endpoint: str, since: datetime) -> int:
        """Count successful ledger rows for ``(identifier, endpoint)`` strictly after ``since``.

        Blocked hits (status >= 400) are logged but never consume quota.
        """
        result = await self._session.execute(
            select(func.count())
            .select_from(ApiUsageLog)
            .where(
                ApiUsageLog.identifier == identifier,
                ApiUsageLog.endpoint == endpoint,
                ApiUsageLog.request_time > since,
                ApiUsageLog.status_code < 400,
            )
        )
        return result.scalar_one()

    async def append(self, identifier: str, endpoint: str, request_time: datetime, status_code: int = 200) -> None:
        self._session.add(
            ApiUsageLog(identifier=identifier, endpoint=endpoint, request_time=request_time, status_code=status_code)
        )
        await self._session.flush()

    async def prune_before(self, cutoff: datetime) -> int:
        result = await self._session.execute(delete(ApiUsageLog).where(ApiUsageLog.request_time < cutoff))
        return result.rowcount or 0
