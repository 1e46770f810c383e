"""
StockUnitOfWork -- the evaluator's only door to storage.

Responsibility:
    Wraps the caller's session, the injected clock and the acting user.
    Every read and write the stock-critical evaluator performs (inventory
    lock, rule and active-alert lookup, alert open/resend/resolve, rule
    stamp, notification insert) goes through here, so all of them land in
    the caller's transaction and share one notion of "now".

Architecture position:
    Kernel > Services -- imperative shell. Flushes, never commits.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.domain.dtos import AlertStatus
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.notification import Notification
from stock_kernel.models.stock_alert import StockAlert
from stock_kernel.models.stock_critical_rule import StockCriticalRule


class StockUnitOfWork:

    def __init__(self, session: Session, clock: Clock, actor_id: UUID):
        self.session = session
        self.clock = clock
        self.actor_id = actor_id

    def now(self) -> datetime:
        return self.clock.now()

    # -- reads ---------------------------------------------------------------

    def lock_inventory(self, inventory_id: UUID) -> InventoryRecord | None:
        """Load the record with SELECT ... FOR UPDATE (no-op on SQLite)."""
        stmt = (
            select(InventoryRecord)
            .where(InventoryRecord.id == inventory_id)
            .with_for_update()
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_rule(self, inventory_id: UUID) -> StockCriticalRule | None:
        stmt = select(StockCriticalRule).where(
            StockCriticalRule.inventory_id == inventory_id
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def find_active_alert(self, inventory_id: UUID) -> StockAlert | None:
        # The partial unique index allows only one; newest-first is a tie-break.
        stmt = (
            select(StockAlert)
            .where(
                StockAlert.inventory_id == inventory_id,
                StockAlert.is_active.is_(True),
            )
            .order_by(StockAlert.opened_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    # -- writes --------------------------------------------------------------

    def open_alert(
        self,
        inventory: InventoryRecord,
        *,
        threshold: int,
        channel: str,
        meta: dict[str, Any],
    ) -> StockAlert:
        now = self.now()
        alert = StockAlert(
            inventory_id=inventory.id,
            threshold=threshold,
            stock_at_alert=inventory.stock,
            status=AlertStatus.OPEN,
            is_active=True,
            opened_at=now,
            last_sent_at=now,
            channel=channel,
            meta=meta,
            created_by_id=self.actor_id,
        )
        alert.inventory = inventory
        self.session.add(alert)
        self.session.flush()
        return alert

    def record_resend(self, alert: StockAlert, *, stock: int, threshold: int) -> None:
        alert.last_sent_at = self.now()
        alert.stock_at_alert = stock
        alert.threshold = threshold
        alert.updated_by_id = self.actor_id
        self.session.flush()

    def resolve_alert(self, alert: StockAlert) -> None:
        alert.status = AlertStatus.RESOLVED
        alert.is_active = False
        alert.resolved_at = self.now()
        alert.updated_by_id = self.actor_id
        self.session.flush()

    def stamp_rule(self, rule: StockCriticalRule) -> None:
        rule.last_notified_at = self.now()
        rule.updated_by_id = self.actor_id
        self.session.flush()

    def notify(
        self,
        *,
        kind: str,
        reference_table: str,
        reference_id: UUID,
        title: str,
        detail: str,
    ) -> Notification:
        notification = Notification(
            kind=kind,
            reference_table=reference_table,
            reference_id=reference_id,
            title=title,
            detail=detail,
            is_read=False,
            created_by_id=self.actor_id,
        )
        self.session.add(notification)
        self.session.flush()
        return notification
