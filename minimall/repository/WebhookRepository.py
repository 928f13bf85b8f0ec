from typing import Any, Dict, List

from sqlalchemy import delete, select, update

from minimall.core.database.models import Webhook
from minimall.core.database.session import get_session_context
from minimall.shared.helpers import now_utc


class WebhookRepository:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or get_session_context

    async def store(
        self, shop_domain: str, topic: str, payload: Dict[str, Any]
    ) -> Webhook:
        """Record an incoming webhook as unprocessed"""
        async with self.session_factory() as session:
            webhook = Webhook(
                shop_domain=shop_domain,
                event=topic,
                topic=topic,
                payload=payload,
                processed=False,
                created_at=now_utc(),
            )
            session.add(webhook)
            await session.commit()
            return webhook

    async def mark_processed(self, shop_domain: str, topic: str) -> int:
        """Flag every pending delivery of this topic for the shop as processed"""
        async with self.session_factory() as session:
            result = await session.execute(
                update(Webhook)
                .where(
                    (Webhook.shop_domain == shop_domain)
                    & (Webhook.event == topic)
                    & (Webhook.processed == False)  # noqa: E712
                )
                .values(processed=True, processed_at=now_utc())
            )
            await session.commit()
            return result.rowcount or 0

    async def list_unprocessed(self, shop_domain: str) -> List[Webhook]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Webhook)
                .where(
                    (Webhook.shop_domain == shop_domain)
                    & (Webhook.processed == False)  # noqa: E712
                )
                .order_by(Webhook.created_at.asc())
            )
            return list(result.scalars().all())

    async def delete_by_shop(self, shop_domain: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(Webhook).where(Webhook.shop_domain == shop_domain)
            )
            await session.commit()
            return result.rowcount or 0
