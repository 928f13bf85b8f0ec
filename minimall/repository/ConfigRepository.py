from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.orm import aliased

from minimall.core.database.models import Config, ConfigVersion
from minimall.core.database.session import get_session_context
from minimall.shared.helpers import now_utc, shop_identifiers


class ConfigRepository:
    def __init__(self, session_factory=None):
        """
        Initializes the repository with a session factory.
        Repository handles its own session management.
        """
        self.session_factory = session_factory or get_session_context

    async def get_config(self, config_id: str) -> Optional[Config]:
        async with self.session_factory() as session:
            return await session.get(Config, config_id)

    async def get_current_version(self, config_id: str) -> Optional[ConfigVersion]:
        """Version the config's current_version_id points at"""
        async with self.session_factory() as session:
            statement = (
                select(ConfigVersion)
                .join(Config, Config.current_version_id == ConfigVersion.id)
                .where(Config.id == config_id)
            )
            result = await session.execute(statement)
            return result.scalar_one_or_none()

    async def get_version_by_name(
        self, config_id: str, version: str
    ) -> Optional[ConfigVersion]:
        async with self.session_factory() as session:
            statement = (
                select(ConfigVersion)
                .where(
                    (ConfigVersion.config_id == config_id)
                    & (ConfigVersion.version == version)
                )
                .order_by(ConfigVersion.created_at.desc())
                .limit(1)
            )
            result = await session.execute(statement)
            return result.scalar_one_or_none()

    async def get_version_by_id(
        self, config_id: str, version_id: str
    ) -> Optional[ConfigVersion]:
        async with self.session_factory() as session:
            statement = select(ConfigVersion).where(
                (ConfigVersion.id == version_id)
                & (ConfigVersion.config_id == config_id)
            )
            result = await session.execute(statement)
            return result.scalar_one_or_none()

    async def get_latest_version(
        self, config_id: str, unpublished_only: bool = False
    ) -> Optional[ConfigVersion]:
        async with self.session_factory() as session:
            statement = select(ConfigVersion).where(
                ConfigVersion.config_id == config_id
            )
            if unpublished_only:
                statement = statement.where(ConfigVersion.is_published == False)  # noqa: E712
            statement = statement.order_by(ConfigVersion.created_at.desc()).limit(1)
            result = await session.execute(statement)
            return result.scalar_one_or_none()

    async def list_configs(
        self, shop: Optional[str] = None, limit: int = 10, offset: int = 0
    ) -> List[Tuple[Config, Optional[ConfigVersion]]]:
        """Configs newest first, each paired with its current version"""
        current = aliased(ConfigVersion)
        async with self.session_factory() as session:
            statement = select(Config, current).outerjoin(
                current, Config.current_version_id == current.id
            )
            if shop:
                statement = statement.where(Config.shop == shop)
            statement = (
                statement.order_by(Config.updated_at.desc()).limit(limit).offset(offset)
            )
            result = await session.execute(statement)
            return [(row[0], row[1]) for row in result.all()]

    async def list_versions(self, config_id: str, limit: int = 10) -> List[ConfigVersion]:
        async with self.session_factory() as session:
            statement = (
                select(ConfigVersion)
                .where(ConfigVersion.config_id == config_id)
                .order_by(ConfigVersion.created_at.desc())
                .limit(limit)
            )
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def add_version(
        self,
        config_id: str,
        shop: str,
        slug: str,
        data: Dict[str, Any],
        version: str,
        is_published: bool = False,
        created_by: str = "admin",
        set_current: bool = True,
    ) -> ConfigVersion:
        """
        Upsert the config row and append a version in a single transaction.

        The new version becomes the config's current version unless
        set_current is False.
        """
        timestamp = now_utc()
        async with self.session_factory() as session:
            config = await session.get(Config, config_id)
            if config is None:
                config = Config(
                    id=config_id,
                    shop=shop,
                    slug=slug,
                    created_at=timestamp,
                    updated_at=timestamp,
                )
                session.add(config)
            else:
                config.updated_at = timestamp
            await session.flush()

            config_version = ConfigVersion(
                config_id=config_id,
                version=version,
                data=data,
                is_published=is_published,
                created_by=created_by,
                created_at=timestamp,
                published_at=timestamp if is_published else None,
            )
            session.add(config_version)
            await session.flush()

            if set_current:
                config.current_version_id = config_version.id

            await session.commit()
            return config_version

    async def publish_version(
        self, config_id: str, version_id: str
    ) -> Optional[ConfigVersion]:
        """Mark one version as the only published one and make it current"""
        timestamp = now_utc()
        async with self.session_factory() as session:
            config_version = await session.get(ConfigVersion, version_id)
            if config_version is None or config_version.config_id != config_id:
                return None

            await session.execute(
                update(ConfigVersion)
                .where(ConfigVersion.config_id == config_id)
                .values(is_published=False)
            )
            await session.execute(
                update(ConfigVersion)
                .where(ConfigVersion.id == version_id)
                .values(is_published=True, published_at=timestamp)
            )
            await session.execute(
                update(Config)
                .where(Config.id == config_id)
                .values(current_version_id=version_id, updated_at=timestamp)
            )
            await session.commit()

            await session.refresh(config_version)
            return config_version

    async def get_publish_state(
        self, config_id: str
    ) -> Tuple[Optional[str], Dict[str, Tuple[bool, Optional[datetime]]]]:
        """Snapshot of current version and per-version publish flags"""
        async with self.session_factory() as session:
            config = await session.get(Config, config_id)
            result = await session.execute(
                select(
                    ConfigVersion.id,
                    ConfigVersion.is_published,
                    ConfigVersion.published_at,
                ).where(ConfigVersion.config_id == config_id)
            )
            flags = {row[0]: (row[1], row[2]) for row in result.all()}
            return (config.current_version_id if config else None), flags

    async def restore_publish_state(
        self,
        config_id: str,
        current_version_id: Optional[str],
        flags: Dict[str, Tuple[bool, Optional[datetime]]],
    ) -> None:
        async with self.session_factory() as session:
            for version_id, (is_published, published_at) in flags.items():
                await session.execute(
                    update(ConfigVersion)
                    .where(ConfigVersion.id == version_id)
                    .values(is_published=is_published, published_at=published_at)
                )
            await session.execute(
                update(Config)
                .where(Config.id == config_id)
                .values(current_version_id=current_version_id)
            )
            await session.commit()

    async def get_config_ids_for_shop(self, shop: str) -> List[str]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Config.id).where(Config.shop.in_(shop_identifiers(shop)))
            )
            return list(result.scalars().all())

    async def delete_configs_for_shop(self, shop: str) -> int:
        """Delete every config stored under the full domain or the short shop name"""
        async with self.session_factory() as session:
            config_ids = (
                await session.execute(
                    select(Config.id).where(Config.shop.in_(shop_identifiers(shop)))
                )
            ).scalars().all()
            if not config_ids:
                return 0
            await session.execute(
                delete(ConfigVersion).where(ConfigVersion.config_id.in_(config_ids))
            )
            result = await session.execute(delete(Config).where(Config.id.in_(config_ids)))
            await session.commit()
            return result.rowcount or 0

    async def delete_config(self, config_id: str) -> bool:
        async with self.session_factory() as session:
            await session.execute(
                delete(ConfigVersion).where(ConfigVersion.config_id == config_id)
            )
            result = await session.execute(delete(Config).where(Config.id == config_id))
            await session.commit()
            return bool(result.rowcount)
