from sqlalchemy.orm import as_declarative, declared_attr
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime, Uuid
import uuid

from ..utils.dates import utcnow


@as_declarative()
class Base:
    __abstract__ = True  # Prevents creating a table for the base class

    id: Mapped[uuid.UUID]

    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()

    id = mapped_column(Uuid, primary_key=True, index=True, default=uuid.uuid4)
    created_at = mapped_column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Soft delete: a row is active while deleted_at is NULL
    deleted_at = mapped_column(DateTime, nullable=True, index=True)
    deleted_by_id = mapped_column(Uuid, nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def mark_deleted(self, deleted_by_id=None):
        self.deleted_at = utcnow()
        self.deleted_by_id = deleted_by_id
