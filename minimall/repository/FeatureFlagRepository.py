from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select

from minimall.core.database.models import FeatureFlag
from minimall.core.database.session import get_session_context
from minimall.shared.helpers import now_utc


class FeatureFlagRepository:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or get_session_context

    async def list_for_shop(self, shop_domain: str) -> List[FeatureFlag]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(FeatureFlag).where(FeatureFlag.shop_domain == shop_domain)
            )
            return list(result.scalars().all())

    async def get_flags(self, shop_domain: str) -> Dict[str, Dict[str, Any]]:
        """Flags keyed by name: {enabled, value}"""
        flags = await self.list_for_shop(shop_domain)
        return {f.flag_name: {"enabled": f.enabled, "value": f.value} for f in flags}

    async def set_flag(
        self,
        shop_domain: str,
        flag_name: str,
        enabled: bool,
        value: Optional[Any] = None,
    ) -> FeatureFlag:
        async with self.session_factory() as session:
            result = await session.execute(
                select(FeatureFlag).where(
                    (FeatureFlag.shop_domain == shop_domain)
                    & (FeatureFlag.flag_name == flag_name)
                )
            )
            flag = result.scalar_one_or_none()
            if flag is None:
                flag = FeatureFlag(
                    shop_domain=shop_domain,
                    flag_name=flag_name,
                    enabled=enabled,
                    value=value,
                )
                session.add(flag)
            else:
                flag.enabled = enabled
                flag.value = value
                flag.updated_at = now_utc()
            await session.commit()
            return flag

    async def delete_by_shop(self, shop_domain: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(FeatureFlag).where(FeatureFlag.shop_domain == shop_domain)
            )
            await session.commit()
            return result.rowcount or 0
