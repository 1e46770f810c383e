"""
StockCriticalEvaluator -- keeps the alert ledger consistent with stock.

Responsibility:
    Given an inventory id, decide whether stock is critical under the
    effective rule, and open, re-send or resolve that record's alert,
    writing a notification on open and re-send. Runs inside the caller's
    transaction, right after the stock-affecting write it follows.

Architecture position:
    Kernel > Services -- imperative shell around
    domain/stock_critical.py (pure decision rules). All storage access goes
    through StockUnitOfWork.

Invariants enforced:
    - At most one active alert per inventory record (the only insert path
      is CREATED, which runs only when no active alert exists; the partial
      unique index backs this under concurrency).
    - stock == threshold is critical.
    - Re-sends respect the cooldown (elapsed at exactly cooldown minutes).
    - Disabled rules and non-stock categories never touch the ledger.

Failure modes:
    Business conditions never raise; they come back as ``noop`` with a
    reason. Storage errors propagate and abort the caller's transaction.

Non-goals:
    Does not commit. Does not run on a timer: a critical record with no
    further writes is re-sent only by an explicit evaluation (see
    scripts/sweep_stock_alerts.py).
"""

from typing import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.domain.stock_critical import (
    EffectiveRule,
    NoopReason,
    StockCriticalPolicy,
    TransitionAction,
    TransitionResult,
    cooldown_elapsed,
    decide_transition,
    is_critical,
    last_notification_time,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.stock_alert import StockAlert
from stock_kernel.models.stock_critical_rule import StockCriticalRule
from stock_kernel.services.base import SYSTEM_ACTOR_ID
from stock_kernel.services.unit_of_work import StockUnitOfWork

logger = get_logger("services.stock_critical_evaluator")


class StockCriticalEvaluator:
    """
    Contract:
        ``evaluate(inventory_id)`` returns a TransitionResult and leaves the
        session flushed. Callers commit together with their own write.

    Guarantees:
        - The effective rule is resolved once per call.
        - One call writes at most one alert change, one rule stamp and one
          notification.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        policy: StockCriticalPolicy | None = None,
        actor_id: UUID | None = None,
    ):
        self.policy = policy or StockCriticalPolicy()
        self._uow = StockUnitOfWork(session, clock, actor_id or SYSTEM_ACTOR_ID)

    def evaluate(self, inventory_id: UUID) -> TransitionResult:
        with LogContext.bind(inventory_id=inventory_id):
            result = self._evaluate(inventory_id)
            logger.info(
                "stock_critical_evaluated",
                extra={
                    "action": result.action.value,
                    "reason": result.reason.value if result.reason else None,
                    "alert_id": str(result.alert_id) if result.alert_id else None,
                },
            )
            return result

    def evaluate_many(self, inventory_ids: Iterable[UUID]) -> list[TransitionResult]:
        """Evaluate several records in order, within the same transaction."""
        return [self.evaluate(inventory_id) for inventory_id in inventory_ids]

    def _evaluate(self, inventory_id: UUID) -> TransitionResult:
        uow = self._uow
        inventory = uow.lock_inventory(inventory_id)
        if inventory is None:
            return TransitionResult.noop(NoopReason.INVENTORY_NOT_FOUND)

        product = inventory.product
        if product is None or not product.tracks_stock:
            return TransitionResult.noop(NoopReason.NOT_STOCK_TRACKED)

        rule = uow.get_rule(inventory.id)
        effective = EffectiveRule.resolve(
            minimum_threshold=inventory.minimum_threshold,
            policy=self.policy,
            rule_enabled=rule.enabled if rule is not None else None,
            threshold_override=rule.threshold_override if rule is not None else None,
            cooldown_minutes=rule.cooldown_minutes if rule is not None else None,
        )
        if not effective.enabled:
            return TransitionResult.noop(NoopReason.RULE_DISABLED)

        critical = is_critical(inventory.stock, effective.threshold)
        active = uow.find_active_alert(inventory.id)

        elapsed = True
        if critical and active is not None:
            last = last_notification_time(
                rule.last_notified_at if rule is not None else None,
                active.last_sent_at,
                active.opened_at,
            )
            elapsed = cooldown_elapsed(uow.now(), last, effective.cooldown_minutes)

        action, reason = decide_transition(critical, active is not None, elapsed)

        if action is TransitionAction.CREATED:
            alert = self._open(inventory, effective, rule)
            return TransitionResult(action=action, alert_id=alert.id)
        if action is TransitionAction.RESENT:
            self._resend(inventory, active, effective, rule)
            return TransitionResult(action=action, alert_id=active.id)
        if action is TransitionAction.RESOLVED:
            uow.resolve_alert(active)
            logger.info("stock_alert_resolved", extra={"alert_id": str(active.id)})
            return TransitionResult(action=action, alert_id=active.id)
        return TransitionResult(
            action=action,
            alert_id=active.id if active is not None else None,
            reason=reason,
        )

    def _open(
        self,
        inventory: InventoryRecord,
        effective: EffectiveRule,
        rule: StockCriticalRule | None,
    ) -> StockAlert:
        product = inventory.product
        alert = self._uow.open_alert(
            inventory,
            threshold=effective.threshold,
            channel=self.policy.channel,
            meta={
                "product_id": str(product.id),
                "product_name": product.name,
                "sku": product.sku,
            },
        )
        self._notify(inventory, effective, self.policy.title_template)
        if rule is not None:
            self._uow.stamp_rule(rule)
        logger.info(
            "stock_alert_opened",
            extra={
                "alert_id": str(alert.id),
                "stock": inventory.stock,
                "threshold": effective.threshold,
            },
        )
        return alert

    def _resend(
        self,
        inventory: InventoryRecord,
        alert: StockAlert,
        effective: EffectiveRule,
        rule: StockCriticalRule | None,
    ) -> None:
        self._uow.record_resend(alert, stock=inventory.stock, threshold=effective.threshold)
        self._notify(inventory, effective, self.policy.reminder_title_template)
        if rule is not None:
            self._uow.stamp_rule(rule)
        logger.info(
            "stock_alert_resent",
            extra={
                "alert_id": str(alert.id),
                "stock": inventory.stock,
                "threshold": effective.threshold,
                "cooldown_minutes": effective.cooldown_minutes,
            },
        )

    def _notify(self, inventory: InventoryRecord, effective: EffectiveRule, title_template: str) -> None:
        policy = self.policy
        self._uow.notify(
            kind=policy.notification_kind,
            reference_table=policy.reference_table,
            reference_id=inventory.id,
            title=title_template.format(name=inventory.product.name),
            detail=policy.detail_template.format(
                stock=inventory.stock, threshold=effective.threshold
            ),
        )
