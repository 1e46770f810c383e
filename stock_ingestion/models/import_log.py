"""
Import log ORM models.

Contract:
    ImportBatchModel records one processed file with its counters;
    ImportRowModel records the outcome of each source row, with the raw
    values as read, so an operator can see what a failed row contained.
    Both are written after all rows ran, in their own transaction.

Architecture: stock_ingestion/models. Imports from stock_kernel.db.base only.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TrackedBase, UUIDString


def to_json_safe(obj: Any) -> Any:
    """Convert values to JSON-serializable form (Decimal -> str, etc.)."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {str(k): to_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json_safe(v) for v in obj]
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    return obj


class ImportBatchModel(TrackedBase):
    __tablename__ = "import_batches"

    source_filename: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    total_rows: Mapped[int] = mapped_column(default=0, nullable=False)
    ok_rows: Mapped[int] = mapped_column(default=0, nullable=False)
    error_rows: Mapped[int] = mapped_column(default=0, nullable=False)
    created_products: Mapped[int] = mapped_column(default=0, nullable=False)
    updated_products: Mapped[int] = mapped_column(default=0, nullable=False)
    created_inventories: Mapped[int] = mapped_column(default=0, nullable=False)
    updated_inventories: Mapped[int] = mapped_column(default=0, nullable=False)
    deleted_inventories: Mapped[int] = mapped_column(default=0, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    rows: Mapped[list["ImportRowModel"]] = relationship(
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="ImportRowModel.row_number",
    )


class ImportRowModel(TrackedBase):
    __tablename__ = "import_rows"

    __table_args__ = (
        Index("ix_import_rows_batch_row", "batch_id", "row_number"),
    )

    batch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("import_batches.id", ondelete="CASCADE"),
        nullable=False,
    )
    row_number: Mapped[int] = mapped_column(nullable=False)
    ok: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    raw: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    inventory_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    stock_critical_action: Mapped[str | None] = mapped_column(String(20), nullable=True)

    batch: Mapped["ImportBatchModel"] = relationship(back_populates="rows")
