"""
Module: stock_kernel.db.base
Responsibility: Declarative base for every table in the stock schema: the
    UUID key convention, the Python-type -> column-type map and the audit
    columns shared by all tracked rows.
Architecture position: Kernel > DB. Lowest-level import target within the
    kernel. MUST NOT import from models/, services/, selectors/ or domain/.

Invariants enforced:
    - Primary keys are uuid4 values stored as String(36), so PostgreSQL and
      SQLite share one schema.
    - datetime columns are timezone-aware.
    - Every tracked row names the actor that created it.
"""

from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import JSON, BigInteger, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID <-> 36-character string. Strings are accepted on bind and normalised."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value if isinstance(value, PyUUID) else PyUUID(str(value)))

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """
    Declarative base.

    ``Mapped[...]`` annotations pick their column type from
    ``type_annotation_map``; ``Optional`` annotations become nullable
    columns. ``meta``/``raw`` style dicts are plain JSON because nothing
    queries into them.
    """

    type_annotation_map: ClassVar[dict] = {
        PyUUID: UUIDString(),
        datetime: DateTime(timezone=True),
        int: BigInteger,
        dict[str, Any]: JSON,
    }

    id: Mapped[PyUUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Base for rows that carry audit columns.

    created_at / updated_at are stamped by the database; updated_at also on
    every UPDATE. These four columns are audit metadata: the immutability
    listeners let them change even on frozen rows.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())
    created_by_id: Mapped[PyUUID] = mapped_column()
    updated_by_id: Mapped[PyUUID | None] = mapped_column()


UUID = PyUUID
