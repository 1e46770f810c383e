"""
AlertService -- manual acknowledge and resolve of stock alerts.

Responsibility:
    The two operator actions on the alert ledger. Both are idempotent: an
    alert already in (or past) the target state is returned unchanged and
    nothing is written.

Architecture position:
    Kernel > Services. Flushes, never commits.

Lifecycle handled here:
    OPEN     --acknowledge--> ACK        (acknowledged_at = now, stays active)
    OPEN/ACK --resolve-->     RESOLVED   (resolved_at = now, is_active = False)
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.domain.dtos import AlertInfo, AlertStatus
from stock_kernel.exceptions import AlertNotFoundError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.stock_alert import StockAlert
from stock_kernel.services.base import BaseService

logger = get_logger("services.alert")


class AlertService(BaseService[StockAlert]):

    def __init__(self, session: Session, clock: Clock):
        super().__init__(session)
        self.clock = clock

    def _get_for_update(self, alert_id: UUID) -> StockAlert:
        alert = self.session.execute(
            select(StockAlert).where(StockAlert.id == alert_id).with_for_update()
        ).scalar_one_or_none()
        if alert is None:
            raise AlertNotFoundError(str(alert_id))
        return alert

    def acknowledge(self, alert_id: UUID, actor_id: UUID) -> AlertInfo:
        """
        Raises:
            AlertNotFoundError: If the alert does not exist.
        """
        alert = self._get_for_update(alert_id)
        if AlertStatus(alert.status) is not AlertStatus.OPEN:
            return alert.to_dto()

        alert.status = AlertStatus.ACK
        alert.acknowledged_at = self.clock.now()
        alert.updated_by_id = actor_id
        self.session.flush()
        logger.info("stock_alert_acknowledged", extra={"alert_id": str(alert.id)})
        return alert.to_dto()

    def resolve(self, alert_id: UUID, actor_id: UUID) -> AlertInfo:
        """
        Raises:
            AlertNotFoundError: If the alert does not exist.
        """
        alert = self._get_for_update(alert_id)
        if alert.is_resolved:
            return alert.to_dto()

        alert.status = AlertStatus.RESOLVED
        alert.is_active = False
        alert.resolved_at = self.clock.now()
        alert.updated_by_id = actor_id
        self.session.flush()
        logger.info("stock_alert_resolved_manually", extra={"alert_id": str(alert.id)})
        return alert.to_dto()
