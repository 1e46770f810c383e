"""
Module: stock_kernel.models.stock_movement
Responsibility: ORM persistence for the append-only stock-movement ledger.
Architecture position: Kernel > Models.

Invariants enforced:
    - quantity > 0 (ck_movement_quantity_positive).
    - Movements are never updated and never deleted on their own; the only
      deletion path is the cascade from their inventory record
      (db/immutability.py).
"""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TrackedBase, UUIDString
from stock_kernel.domain.dtos import MovementInfo
from stock_kernel.domain.movements import MovementKind

if TYPE_CHECKING:
    from stock_kernel.models.inventory import InventoryRecord


class StockMovement(TrackedBase):
    """One Entry, Exit or Adjustment posted against an inventory record."""

    __tablename__ = "stock_movements"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_movement_quantity_positive"),
        Index("idx_movement_inventory_created", "inventory_id", "created_at"),
    )

    inventory_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_records.id", ondelete="CASCADE"),
        nullable=False,
    )

    kind: Mapped[MovementKind] = mapped_column(String(20), nullable=False)

    quantity: Mapped[int] = mapped_column(nullable=False)

    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    inventory: Mapped["InventoryRecord"] = relationship(back_populates="movements")

    def to_dto(self) -> MovementInfo:
        return MovementInfo(
            id=self.id,
            inventory_id=self.inventory_id,
            kind=MovementKind(self.kind),
            quantity=self.quantity,
            note=self.note,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"<StockMovement {MovementKind(self.kind).value} {self.quantity}>"
