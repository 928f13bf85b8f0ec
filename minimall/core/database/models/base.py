"""
Base model class for SQLAlchemy models

Provides common functionality and base configuration for all models.
"""

import uuid
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import Column, String, TIMESTAMP, func
from sqlalchemy.orm import declarative_base, declared_attr

# Create the declarative base
Base = declarative_base()


class TimestampMixin:
    """Mixin for models that need created_at and updated_at timestamps"""

    created_at = Column(
        "created_at",
        TIMESTAMP(timezone=True),
        default=func.current_timestamp(),
        nullable=False,
    )
    updated_at = Column(
        "updated_at",
        TIMESTAMP(timezone=True),
        default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )


class IDMixin:
    """Mixin for models that need a generated string primary key"""

    @declared_attr
    def id(cls):
        return Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))


class SerializableMixin:
    """to_dict/update_from_dict helpers shared by every table"""

    def to_dict(self) -> Dict[str, Any]:
        """Convert model instance to a JSON-friendly dictionary"""
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                value = value.isoformat()
            data[column.key] = value
        return data

    def update_from_dict(self, data: Dict[str, Any]) -> None:
        """Update model instance from dictionary"""
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)})>"


class BaseModel(Base, IDMixin, TimestampMixin, SerializableMixin):
    """
    Base model class with common functionality.

    Models inheriting from this class get:
    - Automatic UUID string ID generation
    - Created/updated timestamps
    - to_dict/update_from_dict helpers
    """

    __abstract__ = True

    @classmethod
    def get_table_name(cls) -> str:
        return cls.__tablename__
