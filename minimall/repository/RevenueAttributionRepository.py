from typing import Any, Dict, List

from sqlalchemy import delete, func, select

from minimall.core.database.models import RevenueAttribution
from minimall.core.database.session import get_session_context


class RevenueAttributionRepository:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or get_session_context

    async def add_many(self, attributions: List[Dict[str, Any]]) -> int:
        if not attributions:
            return 0
        async with self.session_factory() as session:
            session.add_all([RevenueAttribution(**values) for values in attributions])
            await session.commit()
        return len(attributions)

    async def get_by_order(self, order_id: str) -> List[RevenueAttribution]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(RevenueAttribution).where(RevenueAttribution.order_id == order_id)
            )
            return list(result.scalars().all())

    async def _grouped_revenue(self, config_id: str, column) -> List[Dict[str, Any]]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(
                    column,
                    func.sum(RevenueAttribution.revenue),
                    func.sum(RevenueAttribution.quantity),
                    func.count(func.distinct(RevenueAttribution.order_id)),
                )
                .where(RevenueAttribution.config_id == config_id)
                .group_by(column)
                .order_by(func.sum(RevenueAttribution.revenue).desc())
            )
            return [
                {
                    "key": row[0],
                    "revenue": int(row[1] or 0),
                    "quantity": int(row[2] or 0),
                    "orders": int(row[3] or 0),
                }
                for row in result.all()
            ]

    async def revenue_by_block(self, config_id: str) -> List[Dict[str, Any]]:
        return await self._grouped_revenue(config_id, RevenueAttribution.block_id)

    async def revenue_by_layout_preset(self, config_id: str) -> List[Dict[str, Any]]:
        return await self._grouped_revenue(config_id, RevenueAttribution.layout_preset)

    async def total_revenue(self, config_id: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                select(func.coalesce(func.sum(RevenueAttribution.revenue), 0)).where(
                    RevenueAttribution.config_id == config_id
                )
            )
            return int(result.scalar_one() or 0)

    async def delete_by_shop(self, shop_domain: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(RevenueAttribution).where(
                    RevenueAttribution.shop_domain == shop_domain
                )
            )
            await session.commit()
            return result.rowcount or 0
