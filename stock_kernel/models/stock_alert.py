"""
Module: stock_kernel.models.stock_alert
Responsibility: ORM persistence for the stock-alert ledger. One row per
    critical episode of an inventory record.
Architecture position: Kernel > Models.

Invariants enforced:
    - At most one active alert per inventory record. A partial unique index
      on inventory_id WHERE is_active makes a second active row impossible
      even when two transactions race; the loser fails on commit.
    - A RESOLVED alert is frozen (db/immutability.py).

Lifecycle:
    OPEN --ack--> ACK
    OPEN/ACK --recovery or manual resolve--> RESOLVED (is_active = False)
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TrackedBase, UUIDString
from stock_kernel.domain.dtos import AlertInfo, AlertStatus

if TYPE_CHECKING:
    from stock_kernel.models.inventory import InventoryRecord


class StockAlert(TrackedBase):
    __tablename__ = "stock_alerts"

    __table_args__ = (
        Index(
            "uq_stock_alert_one_active",
            "inventory_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        Index("idx_stock_alert_status_opened", "status", "opened_at"),
        Index("idx_stock_alert_inventory_opened", "inventory_id", "opened_at"),
    )

    inventory_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_records.id", ondelete="CASCADE"),
        nullable=False,
    )

    threshold: Mapped[int] = mapped_column(nullable=False)

    stock_at_alert: Mapped[int] = mapped_column(nullable=False)

    status: Mapped[AlertStatus] = mapped_column(
        String(20),
        nullable=False,
        default=AlertStatus.OPEN,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    opened_at: Mapped[datetime] = mapped_column(nullable=False)

    last_sent_at: Mapped[datetime | None] = mapped_column(nullable=True)

    acknowledged_at: Mapped[datetime | None] = mapped_column(nullable=True)

    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    channel: Mapped[str | None] = mapped_column(String(30), nullable=True)

    meta: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    inventory: Mapped["InventoryRecord"] = relationship(back_populates="alerts")

    @property
    def is_resolved(self) -> bool:
        return AlertStatus(self.status) is AlertStatus.RESOLVED

    def to_dto(self, *, with_inventory: bool = False) -> AlertInfo:
        code = product_name = product_sku = None
        if with_inventory and self.inventory is not None:
            code = self.inventory.code
            product = self.inventory.product
            if product is not None:
                product_name = product.name
                product_sku = product.sku
        return AlertInfo(
            id=self.id,
            inventory_id=self.inventory_id,
            status=AlertStatus(self.status),
            is_active=self.is_active,
            threshold=self.threshold,
            stock_at_alert=self.stock_at_alert,
            opened_at=self.opened_at,
            last_sent_at=self.last_sent_at,
            acknowledged_at=self.acknowledged_at,
            resolved_at=self.resolved_at,
            channel=self.channel,
            meta=dict(self.meta or {}),
            inventory_code=code,
            product_name=product_name,
            product_sku=product_sku,
        )

    def __repr__(self) -> str:
        return f"<StockAlert {AlertStatus(self.status).value} active={self.is_active} inventory={self.inventory_id}>"
