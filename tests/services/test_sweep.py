"""Tests for the periodic stock-critical sweep."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from stock_kernel.db.engine import transaction_scope
from stock_kernel.domain.categories import ProductKind
from stock_kernel.domain.commands import InventoryCreate
from stock_kernel.domain.stock_critical import NoopReason, TransitionAction
from stock_kernel.models.notification import Notification
from stock_kernel.services.inventory_service import InventoryService
from stock_kernel.services.product_service import ProductService
from stock_kernel.services.stock_critical_evaluator import StockCriticalEvaluator
from stock_kernel.services.sweep import sweep_stock_critical


@pytest.fixture
def seeded(session_factory, deterministic_clock, test_actor_id):
    """Commit one critical record (INV-1) and one healthy record (INV-2)."""
    with transaction_scope(session_factory) as s:
        for n, (stock, minimum) in enumerate([(1, 5), (50, 5)], start=1):
            product = ProductService(s).create_product(
                name=f"Producto {n}", kind=ProductKind.PRODUCT, sku=f"SKU-{n}", actor_id=test_actor_id
            )
            InventoryService(s, deterministic_clock).create_inventory(
                InventoryCreate(product_id=product.id, code=f"INV-{n}", stock=stock, minimum_threshold=minimum),
                test_actor_id,
            )


def _notification_count(session_factory):
    with transaction_scope(session_factory) as s:
        return s.execute(select(func.count(Notification.id))).scalar_one()


class TestSweep:

    def test_within_cooldown_nothing_is_sent(self, seeded, session_factory, deterministic_clock):
        results = sweep_stock_critical(session_factory, deterministic_clock)

        assert [(r.action, r.reason) for r in results] == [
            (TransitionAction.NOOP, NoopReason.COOLDOWN),
            (TransitionAction.NOOP, None),
        ]
        assert _notification_count(session_factory) == 1

    def test_resends_after_cooldown(self, seeded, session_factory, deterministic_clock):
        deterministic_clock.advance_minutes(360)

        results = sweep_stock_critical(session_factory, deterministic_clock)

        assert [r.action for r in results] == [TransitionAction.RESENT, TransitionAction.NOOP]
        assert _notification_count(session_factory) == 2

        again = sweep_stock_critical(session_factory, deterministic_clock)
        assert again[0].reason is NoopReason.COOLDOWN

    def test_empty_database(self, session_factory, deterministic_clock):
        assert sweep_stock_critical(session_factory, deterministic_clock) == []

    def test_summary_is_logged(self, seeded, session_factory, deterministic_clock, captured_logs):
        deterministic_clock.advance_minutes(360)

        sweep_stock_critical(session_factory, deterministic_clock)

        summary = next(r for r in captured_logs() if r["message"] == "stock_critical_sweep_completed")
        assert summary["evaluated"] == 2
        assert summary["resent_count"] == 1
        assert summary["noop_count"] == 1
        assert summary["producer"] == "stock_critical_sweep"

    def test_failing_record_does_not_stop_the_sweep(
        self, seeded, session_factory, deterministic_clock, monkeypatch, captured_logs
    ):
        evaluate = StockCriticalEvaluator.evaluate
        calls = []

        def evaluate_failing_first(self, inventory_id):
            calls.append(inventory_id)
            if len(calls) == 1:
                raise OperationalError("SELECT", {}, Exception("database is locked"))
            return evaluate(self, inventory_id)

        monkeypatch.setattr(StockCriticalEvaluator, "evaluate", evaluate_failing_first)
        deterministic_clock.advance_minutes(360)

        results = sweep_stock_critical(session_factory, deterministic_clock)

        assert len(calls) == 2
        assert [r.action for r in results] == [TransitionAction.NOOP]
        assert _notification_count(session_factory) == 1
        logs = captured_logs()
        failed = next(r for r in logs if r["message"] == "stock_critical_sweep_record_failed")
        assert failed["inventory_id"] == str(calls[0])
        assert failed["exc_type"] == "OperationalError"
        summary = next(r for r in logs if r["message"] == "stock_critical_sweep_completed")
        assert (summary["evaluated"], summary["failed_count"]) == (1, 1)
