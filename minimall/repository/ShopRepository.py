from typing import Optional

from sqlalchemy import delete, select, update

from minimall.core.database.models import Shop
from minimall.core.database.session import get_session_context
from minimall.shared.helpers import now_utc


class ShopRepository:
    def __init__(self, session_factory=None):
        """
        Initializes the repository with a session factory.
        Repository handles its own session management.
        """
        self.session_factory = session_factory or get_session_context

    async def get_active_by_domain(self, shop_domain: str) -> Optional[Shop]:
        """
        Fetches a single active shop by its domain.

        Returns:
            A SQLAlchemy 'Shop' model instance if found and active, otherwise None.
        """
        async with self.session_factory() as session:
            statement = select(Shop).where(
                (Shop.shop_domain == shop_domain) & (Shop.is_active == True)  # noqa: E712
            )
            result = await session.execute(statement)
            return result.scalar_one_or_none()

    async def upsert_installation(
        self, shop_domain: str, access_token: str, scope: Optional[str] = None
    ) -> Shop:
        """Store the offline token for a shop and mark it active"""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Shop).where(Shop.shop_domain == shop_domain)
            )
            shop = result.scalar_one_or_none()
            if shop is None:
                shop = Shop(
                    shop_domain=shop_domain,
                    access_token=access_token,
                    scope=scope,
                    is_active=True,
                )
                session.add(shop)
            else:
                shop.access_token = access_token
                shop.scope = scope
                shop.is_active = True
                shop.updated_at = now_utc()
            await session.commit()
            return shop

    async def deactivate(self, shop_domain: str) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                update(Shop)
                .where(Shop.shop_domain == shop_domain)
                .values(is_active=False, updated_at=now_utc())
            )
            await session.commit()
            return bool(result.rowcount)

    async def delete_by_domain(self, shop_domain: str) -> bool:
        """Drop the shop row together with its stored access token"""
        async with self.session_factory() as session:
            result = await session.execute(
                delete(Shop).where(Shop.shop_domain == shop_domain)
            )
            await session.commit()
            return bool(result.rowcount)
