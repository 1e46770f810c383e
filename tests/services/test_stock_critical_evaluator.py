"""
Tests for StockCriticalEvaluator.

Covers:
- Transition table (created, resent, resolved, noop)
- Inclusive threshold
- Cooldown boundary
- Rule overrides and disabled rules
- Non-stock categories and missing records
- Notifications and rule stamps written alongside alerts
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from stock_kernel.domain.categories import ProductKind
from stock_kernel.domain.dtos import AlertStatus
from stock_kernel.domain.stock_critical import (
    NoopReason,
    StockCriticalPolicy,
    TransitionAction,
    as_utc,
)
from stock_kernel.models.notification import Notification
from stock_kernel.models.stock_alert import StockAlert
from stock_kernel.models.stock_critical_rule import StockCriticalRule
from stock_kernel.selectors.alert_selector import AlertSelector
from stock_kernel.services.stock_critical_evaluator import StockCriticalEvaluator


@pytest.fixture
def evaluator(session, deterministic_clock, test_actor_id):
    return StockCriticalEvaluator(session, deterministic_clock, StockCriticalPolicy(), test_actor_id)


def _alerts(session, inventory_id) -> list[StockAlert]:
    return list(
        session.execute(
            select(StockAlert).where(StockAlert.inventory_id == inventory_id)
        ).scalars()
    )


def _notification_count(session, inventory_id) -> int:
    return session.execute(
        select(func.count(Notification.id)).where(Notification.reference_id == inventory_id)
    ).scalar_one()


class TestTransitions:
    """Each row of the transition table."""

    def test_not_critical_without_alert_is_noop(self, session, evaluator, make_inventory):
        inventory = make_inventory(stock=10, minimum_threshold=5)

        result = evaluator.evaluate(inventory.id)

        assert result.action is TransitionAction.NOOP
        assert result.reason is None
        assert _alerts(session, inventory.id) == []

    def test_critical_without_alert_creates(self, session, evaluator, make_inventory, deterministic_clock):
        inventory = make_inventory(stock=3, minimum_threshold=5)

        result = evaluator.evaluate(inventory.id)

        assert result.action is TransitionAction.CREATED
        alerts = _alerts(session, inventory.id)
        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.id == result.alert_id
        assert AlertStatus(alert.status) is AlertStatus.OPEN
        assert alert.is_active is True
        assert alert.threshold == 5
        assert alert.stock_at_alert == 3
        assert alert.channel == "system"
        assert as_utc(alert.opened_at) == deterministic_clock.now()
        assert as_utc(alert.last_sent_at) == deterministic_clock.now()
        assert alert.meta["sku"] == inventory.product.sku
        assert alert.meta["product_name"] == inventory.product.name

    def test_created_writes_notification(self, session, evaluator, make_inventory):
        inventory = make_inventory(stock=2, minimum_threshold=5)

        evaluator.evaluate(inventory.id)

        notification = session.execute(
            select(Notification).where(Notification.reference_id == inventory.id)
        ).scalar_one()
        assert notification.kind == "STOCK_CRITICO"
        assert notification.reference_table == "Inventario"
        assert notification.title == f"Stock crítico: {inventory.product.name}"
        assert notification.detail == "Stock 2 (mínimo 5)."
        assert notification.is_read is False

    def test_recovery_resolves_active_alert(self, session, evaluator, make_inventory, deterministic_clock):
        inventory = make_inventory(stock=3, minimum_threshold=5)
        created = evaluator.evaluate(inventory.id)

        inventory.stock = 6
        session.flush()
        deterministic_clock.advance_minutes(10)
        result = evaluator.evaluate(inventory.id)

        assert result.action is TransitionAction.RESOLVED
        assert result.alert_id == created.alert_id
        alert = session.get(StockAlert, created.alert_id)
        assert AlertStatus(alert.status) is AlertStatus.RESOLVED
        assert alert.is_active is False
        assert as_utc(alert.resolved_at) == deterministic_clock.now()

    def test_resolve_writes_no_notification(self, session, evaluator, make_inventory):
        inventory = make_inventory(stock=3, minimum_threshold=5)
        evaluator.evaluate(inventory.id)
        inventory.stock = 50
        session.flush()

        evaluator.evaluate(inventory.id)

        assert _notification_count(session, inventory.id) == 1

    def test_critical_again_after_resolution_opens_new_alert(
        self, session, evaluator, make_inventory, deterministic_clock
    ):
        inventory = make_inventory(stock=3, minimum_threshold=5)
        first = evaluator.evaluate(inventory.id)
        inventory.stock = 10
        session.flush()
        evaluator.evaluate(inventory.id)

        inventory.stock = 1
        session.flush()
        second = evaluator.evaluate(inventory.id)

        assert second.action is TransitionAction.CREATED
        assert second.alert_id != first.alert_id
        assert AlertSelector(session).count_active_for(inventory.id) == 1
        assert len(_alerts(session, inventory.id)) == 2

    def test_repeated_evaluation_never_duplicates_active_alert(
        self, session, evaluator, make_inventory, deterministic_clock
    ):
        inventory = make_inventory(stock=0, minimum_threshold=5)
        for _ in range(5):
            evaluator.evaluate(inventory.id)
            deterministic_clock.advance_minutes(400)

        assert AlertSelector(session).count_active_for(inventory.id) == 1

    def test_acknowledged_alert_is_resolved_on_recovery(
        self, session, evaluator, make_inventory, deterministic_clock, test_actor_id
    ):
        from stock_kernel.services.alert_service import AlertService

        inventory = make_inventory(stock=3, minimum_threshold=5)
        created = evaluator.evaluate(inventory.id)
        AlertService(session, deterministic_clock).acknowledge(created.alert_id, test_actor_id)

        inventory.stock = 9
        session.flush()
        result = evaluator.evaluate(inventory.id)

        assert result.action is TransitionAction.RESOLVED
        assert session.get(StockAlert, created.alert_id).is_active is False


class TestThreshold:
    """stock == threshold counts as critical."""

    def test_stock_equal_to_minimum_is_critical(self, evaluator, make_inventory):
        inventory = make_inventory(stock=5, minimum_threshold=5)

        assert evaluator.evaluate(inventory.id).action is TransitionAction.CREATED

    def test_stock_one_above_minimum_is_not_critical(self, evaluator, make_inventory):
        inventory = make_inventory(stock=6, minimum_threshold=5)

        assert evaluator.evaluate(inventory.id).action is TransitionAction.NOOP

    def test_zero_minimum_with_zero_stock_is_critical(self, evaluator, make_inventory):
        inventory = make_inventory(stock=0, minimum_threshold=0)

        assert evaluator.evaluate(inventory.id).action is TransitionAction.CREATED


class TestCooldown:
    """Re-sends happen only once the cooldown has fully elapsed."""

    def test_within_cooldown_is_noop(self, session, evaluator, make_inventory, deterministic_clock):
        inventory = make_inventory(stock=3, minimum_threshold=5)
        created = evaluator.evaluate(inventory.id)

        deterministic_clock.advance_minutes(359)
        result = evaluator.evaluate(inventory.id)

        assert result.action is TransitionAction.NOOP
        assert result.reason is NoopReason.COOLDOWN
        assert result.alert_id == created.alert_id
        assert _notification_count(session, inventory.id) == 1

    def test_exactly_at_cooldown_resends(self, session, evaluator, make_inventory, deterministic_clock):
        inventory = make_inventory(stock=3, minimum_threshold=5)
        created = evaluator.evaluate(inventory.id)

        deterministic_clock.advance_minutes(360)
        result = evaluator.evaluate(inventory.id)

        assert result.action is TransitionAction.RESENT
        assert result.alert_id == created.alert_id
        alert = session.get(StockAlert, created.alert_id)
        assert as_utc(alert.last_sent_at) == deterministic_clock.now()
        assert _notification_count(session, inventory.id) == 2

    def test_resend_uses_reminder_title(self, session, evaluator, make_inventory, deterministic_clock):
        inventory = make_inventory(stock=3, minimum_threshold=5)
        evaluator.evaluate(inventory.id)
        deterministic_clock.advance_minutes(360)

        evaluator.evaluate(inventory.id)

        titles = set(
            session.execute(
                select(Notification.title).where(Notification.reference_id == inventory.id)
            ).scalars()
        )
        assert f"Stock crítico (recordatorio): {inventory.product.name}" in titles

    def test_resend_refreshes_snapshot(self, session, evaluator, make_inventory, deterministic_clock):
        inventory = make_inventory(stock=3, minimum_threshold=5)
        created = evaluator.evaluate(inventory.id)
        inventory.stock = 1
        session.flush()
        deterministic_clock.advance_minutes(361)

        evaluator.evaluate(inventory.id)

        assert session.get(StockAlert, created.alert_id).stock_at_alert == 1

    def test_cooldown_restarts_after_resend(self, evaluator, make_inventory, deterministic_clock):
        inventory = make_inventory(stock=3, minimum_threshold=5)
        evaluator.evaluate(inventory.id)
        deterministic_clock.advance_minutes(360)
        evaluator.evaluate(inventory.id)

        deterministic_clock.advance_minutes(100)

        assert evaluator.evaluate(inventory.id).reason is NoopReason.COOLDOWN

    def test_policy_default_cooldown_applies(self, session, deterministic_clock, make_inventory, test_actor_id):
        evaluator = StockCriticalEvaluator(
            session,
            deterministic_clock,
            StockCriticalPolicy(default_cooldown_minutes=30),
            test_actor_id,
        )
        inventory = make_inventory(stock=3, minimum_threshold=5)
        evaluator.evaluate(inventory.id)

        deterministic_clock.advance_minutes(30)

        assert evaluator.evaluate(inventory.id).action is TransitionAction.RESENT


class TestRuleOverrides:
    """Per-record StockCriticalRule rows."""

    def _rule(self, session, inventory, test_actor_id, **fields) -> StockCriticalRule:
        rule = StockCriticalRule(inventory_id=inventory.id, created_by_id=test_actor_id, **fields)
        session.add(rule)
        session.flush()
        return rule

    def test_threshold_override_replaces_minimum(self, session, evaluator, make_inventory, test_actor_id):
        inventory = make_inventory(stock=5, minimum_threshold=0)
        self._rule(session, inventory, test_actor_id, enabled=True, threshold_override=5)

        result = evaluator.evaluate(inventory.id)

        assert result.action is TransitionAction.CREATED
        assert session.get(StockAlert, result.alert_id).threshold == 5

    def test_threshold_override_above_stock_resolves(self, session, evaluator, make_inventory, test_actor_id):
        inventory = make_inventory(stock=5, minimum_threshold=0)
        self._rule(session, inventory, test_actor_id, enabled=True, threshold_override=5)
        evaluator.evaluate(inventory.id)
        inventory.stock = 6
        session.flush()

        assert evaluator.evaluate(inventory.id).action is TransitionAction.RESOLVED

    def test_disabled_rule_is_noop(self, session, evaluator, make_inventory, test_actor_id):
        inventory = make_inventory(stock=0, minimum_threshold=5)
        self._rule(session, inventory, test_actor_id, enabled=False)

        result = evaluator.evaluate(inventory.id)

        assert result.action is TransitionAction.NOOP
        assert result.reason is NoopReason.RULE_DISABLED
        assert _alerts(session, inventory.id) == []

    def test_disabled_rule_leaves_existing_alert_alone(
        self, session, evaluator, make_inventory, test_actor_id
    ):
        inventory = make_inventory(stock=0, minimum_threshold=5)
        created = evaluator.evaluate(inventory.id)
        self._rule(session, inventory, test_actor_id, enabled=False)
        inventory.stock = 100
        session.flush()

        assert evaluator.evaluate(inventory.id).reason is NoopReason.RULE_DISABLED
        assert session.get(StockAlert, created.alert_id).is_active is True

    def test_rule_cooldown_override(self, session, evaluator, make_inventory, deterministic_clock, test_actor_id):
        inventory = make_inventory(stock=1, minimum_threshold=5)
        self._rule(session, inventory, test_actor_id, enabled=True, cooldown_minutes=15)
        evaluator.evaluate(inventory.id)

        deterministic_clock.advance_minutes(14)
        assert evaluator.evaluate(inventory.id).reason is NoopReason.COOLDOWN
        deterministic_clock.advance_minutes(1)
        assert evaluator.evaluate(inventory.id).action is TransitionAction.RESENT

    def test_open_and_resend_stamp_rule(self, session, evaluator, make_inventory, deterministic_clock, test_actor_id):
        inventory = make_inventory(stock=1, minimum_threshold=5)
        rule = self._rule(session, inventory, test_actor_id, enabled=True)

        evaluator.evaluate(inventory.id)
        assert as_utc(rule.last_notified_at) == deterministic_clock.now()

        deterministic_clock.advance_minutes(360)
        evaluator.evaluate(inventory.id)
        assert as_utc(rule.last_notified_at) == deterministic_clock.now()


class TestNoopConditions:
    """Records the evaluator refuses to touch."""

    def test_missing_inventory(self, evaluator):
        result = evaluator.evaluate(uuid4())

        assert result.action is TransitionAction.NOOP
        assert result.reason is NoopReason.INVENTORY_NOT_FOUND
        assert result.to_dict() == {"action": "noop", "reason": "inventario_not_found"}

    @pytest.mark.parametrize("kind", [ProductKind.FREIGHT, ProductKind.SERVICE])
    def test_non_stock_category(self, session, evaluator, make_product, make_inventory, kind):
        product = make_product(name="Despacho regional", kind=kind)
        inventory = make_inventory(stock=0, minimum_threshold=5, product=product)

        result = evaluator.evaluate(inventory.id)

        assert result.action is TransitionAction.NOOP
        assert result.reason is NoopReason.NOT_STOCK_TRACKED
        assert _alerts(session, inventory.id) == []


class TestEvaluateMany:

    def test_evaluates_each_record(self, evaluator, make_inventory):
        critical = make_inventory(stock=1, minimum_threshold=5)
        healthy = make_inventory(stock=50, minimum_threshold=5)

        results = evaluator.evaluate_many([critical.id, healthy.id])

        assert [r.action for r in results] == [TransitionAction.CREATED, TransitionAction.NOOP]


class TestLogging:

    def test_evaluation_is_logged_with_inventory_context(self, evaluator, make_inventory, captured_logs):
        inventory = make_inventory(stock=1, minimum_threshold=5)

        evaluator.evaluate(inventory.id)

        logs = captured_logs()
        evaluated = [r for r in logs if r["message"] == "stock_critical_evaluated"]
        assert evaluated
        assert evaluated[-1]["action"] == "created"
        assert evaluated[-1]["inventory_id"] == str(inventory.id)
        assert any(r["message"] == "stock_alert_opened" for r in logs)
