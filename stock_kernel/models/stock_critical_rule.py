"""
Module: stock_kernel.models.stock_critical_rule
Responsibility: Optional per-inventory override of the stock-critical rule.
Architecture position: Kernel > Models.

Absence of a row means: enabled, no threshold override, default cooldown.
last_notified_at is written only by the stock-critical evaluator.
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TrackedBase, UUIDString
from stock_kernel.domain.dtos import RuleInfo

if TYPE_CHECKING:
    from stock_kernel.models.inventory import InventoryRecord


class StockCriticalRule(TrackedBase):
    __tablename__ = "stock_critical_rules"

    __table_args__ = (
        UniqueConstraint("inventory_id", name="uq_stock_rule_inventory"),
    )

    inventory_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_records.id", ondelete="CASCADE"),
        nullable=False,
    )

    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    threshold_override: Mapped[int | None] = mapped_column(nullable=True)

    cooldown_minutes: Mapped[int | None] = mapped_column(nullable=True)

    last_notified_at: Mapped[datetime | None] = mapped_column(nullable=True)

    inventory: Mapped["InventoryRecord"] = relationship(back_populates="critical_rule")

    def to_dto(self) -> RuleInfo:
        return RuleInfo(
            inventory_id=self.inventory_id,
            enabled=self.enabled,
            threshold_override=self.threshold_override,
            cooldown_minutes=self.cooldown_minutes,
            last_notified_at=self.last_notified_at,
        )

    def __repr__(self) -> str:
        return (
            f"<StockCriticalRule inventory={self.inventory_id} enabled={self.enabled} "
            f"threshold={self.threshold_override} cooldown={self.cooldown_minutes}>"
        )
