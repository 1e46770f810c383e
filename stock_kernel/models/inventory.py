"""
Module: stock_kernel.models.inventory
Responsibility: ORM persistence for inventory records, the per-product stock
    counter the movement ledger and the stock-critical evaluator operate on.
Architecture position: Kernel > Models.

Invariants enforced:
    - One inventory record per product (uq_inventory_product).
    - code is unique when present (uq_inventory_code).
    - Deleting a record deletes its movements, alerts and rule (ORM cascade
      plus ON DELETE CASCADE foreign keys).

Non-goals:
    stock >= 0 is NOT a column constraint. Direct edits may set any
    non-negative value; the movement ledger rejects negative results.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TrackedBase, UUIDString
from stock_kernel.domain.dtos import InventoryInfo

if TYPE_CHECKING:
    from stock_kernel.models.product import Product
    from stock_kernel.models.stock_alert import StockAlert
    from stock_kernel.models.stock_critical_rule import StockCriticalRule
    from stock_kernel.models.stock_movement import StockMovement


class InventoryRecord(TrackedBase):
    """Stock counter and minimum threshold of one stock-tracked product."""

    __tablename__ = "inventory_records"

    __table_args__ = (
        UniqueConstraint("product_id", name="uq_inventory_product"),
        UniqueConstraint("code", name="uq_inventory_code"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )

    code: Mapped[str | None] = mapped_column(String(64), nullable=True)

    stock: Mapped[int] = mapped_column(nullable=False, default=0)

    minimum_threshold: Mapped[int] = mapped_column(nullable=False, default=0)

    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    product: Mapped["Product"] = relationship(back_populates="inventory")

    movements: Mapped[list["StockMovement"]] = relationship(
        back_populates="inventory",
        cascade="all, delete-orphan",
        order_by="StockMovement.created_at.desc()",
    )

    alerts: Mapped[list["StockAlert"]] = relationship(
        back_populates="inventory",
        cascade="all, delete-orphan",
        order_by="StockAlert.opened_at.desc()",
    )

    critical_rule: Mapped["StockCriticalRule | None"] = relationship(
        back_populates="inventory",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def to_dto(self, *, with_relations: bool = False) -> InventoryInfo:
        """
        Convert to InventoryInfo.

        With ``with_relations`` the product, active alert and rule are
        included; this loads those relationships.
        """
        if not with_relations:
            return InventoryInfo(
                id=self.id,
                product_id=self.product_id,
                stock=self.stock,
                minimum_threshold=self.minimum_threshold,
                code=self.code,
                location=self.location,
            )
        active = next((a for a in self.alerts if a.is_active), None)
        return InventoryInfo(
            id=self.id,
            product_id=self.product_id,
            stock=self.stock,
            minimum_threshold=self.minimum_threshold,
            code=self.code,
            location=self.location,
            product=self.product.to_dto() if self.product is not None else None,
            active_alert=active.to_dto() if active is not None else None,
            rule=self.critical_rule.to_dto() if self.critical_rule is not None else None,
        )

    def __repr__(self) -> str:
        return f"<InventoryRecord {self.code}: stock={self.stock} min={self.minimum_threshold}>"
