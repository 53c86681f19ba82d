from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from forexnepal.db.models.api_access import ApiAccessSetting
from forexnepal.domain.enums import AccessLevel


class ApiAccessRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_all(self) -> list[ApiAccessSetting]:
        result = await self._session.execute(select(ApiAccessSetting).order_by(ApiAccessSetting.endpoint.asc()))
        return list(result.scalars().all())

    async def get(self, endpoint: str) -> Optional[ApiAccessSetting]:
        result = await self._session.execute(select(ApiAccessSetting).where(ApiAccessSetting.endpoint == endpoint))
        return result.scalar_one_or_none()

    async def upsert(
        self,
        endpoint: str,
        access_level: AccessLevel,
        allowed_rules: str = "[]",
        quota_per_hour: int = -1,
    ) -> ApiAccessSetting:
        setting = await self.get(endpoint)
        if setting is None:
            setting = ApiAccessSetting(endpoint=endpoint)
            self._session.add(setting)
        setting.access_level = access_level.value
        setting.allowed_rules = allowed_rules
        setting.quota_per_hour = quota_per_hour
        await self._session.flush()
        return setting

    async def create_if_missing(self, endpoint: str) -> bool:
        """Register ``endpoint`` as public/unlimited unless a rule already exists."""
        if await self.get(endpoint) is not None:
            return False
        self._session.add(ApiAccessSetting(endpoint=endpoint, access_level=AccessLevel.PUBLIC.value))
        await self._session.flush()
        return True
