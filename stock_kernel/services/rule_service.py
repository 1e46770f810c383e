"""
StockCriticalRuleService -- per-record overrides of the stock-critical rule.

Changing a rule does not evaluate the record; the next stock-affecting
write picks the new rule up.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.commands import RuleUpdate
from stock_kernel.domain.dtos import RuleInfo
from stock_kernel.exceptions import InventoryNotFoundError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.stock_critical_rule import StockCriticalRule
from stock_kernel.services.base import BaseService

logger = get_logger("services.rule")


class StockCriticalRuleService(BaseService[StockCriticalRule]):

    def __init__(self, session: Session):
        super().__init__(session)

    def _find(self, inventory_id: UUID) -> StockCriticalRule | None:
        return self.session.execute(
            select(StockCriticalRule).where(StockCriticalRule.inventory_id == inventory_id)
        ).scalar_one_or_none()

    def set_rule(self, inventory_id: UUID, update: RuleUpdate, actor_id: UUID) -> RuleInfo:
        """
        Create or replace the override for ``inventory_id``.

        threshold_override and cooldown_minutes are written as given (None
        clears the override). enabled=None keeps the current value, or
        True for a new rule. last_notified_at is preserved.

        Raises:
            InventoryNotFoundError: If the record does not exist.
        """
        if self.session.get(InventoryRecord, inventory_id) is None:
            raise InventoryNotFoundError(str(inventory_id))

        rule = self._find(inventory_id)
        if rule is None:
            rule = StockCriticalRule(
                inventory_id=inventory_id,
                enabled=True if update.enabled is None else update.enabled,
                threshold_override=update.threshold_override,
                cooldown_minutes=update.cooldown_minutes,
                created_by_id=actor_id,
            )
            self.session.add(rule)
        else:
            if update.enabled is not None:
                rule.enabled = update.enabled
            rule.threshold_override = update.threshold_override
            rule.cooldown_minutes = update.cooldown_minutes
            rule.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "stock_rule_set",
            extra={
                "inventory_id": str(inventory_id),
                "enabled": rule.enabled,
                "threshold_override": rule.threshold_override,
                "cooldown_minutes": rule.cooldown_minutes,
            },
        )
        return rule.to_dto()

    def clear_rule(self, inventory_id: UUID) -> bool:
        """Remove the override. Returns False when there was none."""
        rule = self._find(inventory_id)
        if rule is None:
            return False
        self.session.delete(rule)
        self.session.flush()
        logger.info("stock_rule_cleared", extra={"inventory_id": str(inventory_id)})
        return True
