"""Base model with common fields for all database models"""

import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from photo_restore.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class BaseModel(Base):
    """Abstract base model with common fields"""

    __abstract__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id})>"


class OwnedModel(BaseModel):
    """Abstract base for rows scoped to the owning user"""

    __abstract__ = True

    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)


class SoftDeleteMixin:
    """Rows are hidden by setting deleted_at rather than removed"""

    deleted_at = Column(DateTime, nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = datetime.utcnow()
