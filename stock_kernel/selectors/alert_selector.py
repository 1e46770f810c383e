"""
Module: stock_kernel.selectors.alert_selector
Responsibility: Read access to the stock-alert ledger for the operator UI
    (lists, badge counts, single lookups).
Architecture position: Kernel > Selectors. Read-only.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import joinedload

from stock_kernel.domain.dtos import AlertInfo, AlertStatus
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.stock_alert import StockAlert
from stock_kernel.selectors.base import BaseSelector

DEFAULT_LIST_LIMIT = 200


class AlertSelector(BaseSelector[StockAlert]):

    def list_alerts(
        self,
        status: AlertStatus | str | None = AlertStatus.OPEN,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[AlertInfo]:
        """Alerts with ``status`` (unknown values mean OPEN), newest first."""
        wanted = AlertStatus.parse(status, AlertStatus.OPEN)
        stmt = (
            select(StockAlert)
            .options(joinedload(StockAlert.inventory).joinedload(InventoryRecord.product))
            .where(StockAlert.status == wanted.value)
            .order_by(StockAlert.opened_at.desc())
            .limit(max(1, min(int(limit), DEFAULT_LIST_LIMIT)))
        )
        alerts = self.session.execute(stmt).scalars().all()
        return [alert.to_dto(with_inventory=True) for alert in alerts]

    def count_alerts(self, status: AlertStatus | str | None = AlertStatus.OPEN) -> int:
        wanted = AlertStatus.parse(status, AlertStatus.OPEN)
        stmt = select(func.count(StockAlert.id)).where(StockAlert.status == wanted.value)
        return int(self.session.execute(stmt).scalar_one())

    def get_alert(self, alert_id: UUID) -> AlertInfo | None:
        alert = self.session.get(StockAlert, alert_id)
        return alert.to_dto(with_inventory=True) if alert is not None else None

    def active_alert_for(self, inventory_id: UUID) -> AlertInfo | None:
        alert = self.session.execute(
            select(StockAlert)
            .where(StockAlert.inventory_id == inventory_id, StockAlert.is_active.is_(True))
            .order_by(StockAlert.opened_at.desc())
            .limit(1)
        ).scalars().first()
        return alert.to_dto() if alert is not None else None

    def count_active_for(self, inventory_id: UUID) -> int:
        stmt = select(func.count(StockAlert.id)).where(
            StockAlert.inventory_id == inventory_id, StockAlert.is_active.is_(True)
        )
        return int(self.session.execute(stmt).scalar_one())
