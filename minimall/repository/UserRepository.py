from typing import List, Optional

from sqlalchemy import delete, select

from minimall.core.database.models import User
from minimall.core.database.session import get_session_context
from minimall.shared.helpers import now_utc


class UserRepository:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or get_session_context

    async def get_by_email(self, email: str) -> Optional[User]:
        async with self.session_factory() as session:
            result = await session.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()

    async def list_by_shop(self, shop_domain: str) -> List[User]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(User).where(User.shop_domain == shop_domain)
            )
            return list(result.scalars().all())

    async def upsert_by_email(
        self,
        email: str,
        name: str,
        shop_domain: str,
        role: str = "editor",
        permissions: Optional[list] = None,
    ) -> User:
        """
        Insert a user, or move an existing email to the given shop.

        Only shop_domain and updated_at change on conflict.
        """
        async with self.session_factory() as session:
            result = await session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
            if user is None:
                user = User(
                    email=email,
                    name=name,
                    shop_domain=shop_domain,
                    role=role,
                    permissions=permissions or [],
                )
                session.add(user)
            else:
                user.shop_domain = shop_domain
                user.updated_at = now_utc()
            await session.commit()
            return user

    async def delete_by_shop(self, shop_domain: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(User).where(User.shop_domain == shop_domain)
            )
            await session.commit()
            return result.rowcount or 0
