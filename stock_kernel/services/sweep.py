"""
On-demand re-evaluation of every inventory record.

The evaluator only runs after a stock-affecting write, so a record that
stays critical is re-sent only when something evaluates it again. This
sweep is that something; it is meant to be run by an external scheduler.
"""

from collections import Counter
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from stock_kernel.db.engine import transaction_scope
from stock_kernel.domain.clock import Clock
from stock_kernel.domain.stock_critical import (
    StockCriticalPolicy,
    TransitionAction,
    TransitionResult,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.services.stock_critical_evaluator import StockCriticalEvaluator

logger = get_logger("services.sweep")


def sweep_stock_critical(
    session_factory: sessionmaker[Session],
    clock: Clock,
    policy: StockCriticalPolicy | None = None,
    actor_id: UUID | None = None,
) -> list[TransitionResult]:
    """
    Evaluate every inventory record, one transaction per record.

    A failing record rolls back alone, is logged with its traceback and
    left out of the returned results; the sweep carries on with the next
    record.
    """
    with transaction_scope(session_factory) as session:
        inventory_ids = list(
            session.execute(select(InventoryRecord.id).order_by(InventoryRecord.code)).scalars()
        )

    results: list[TransitionResult] = []
    with LogContext.bind(producer="stock_critical_sweep"):
        failed = 0
        for inventory_id in inventory_ids:
            try:
                with transaction_scope(session_factory) as session:
                    evaluator = StockCriticalEvaluator(session, clock, policy, actor_id)
                    results.append(evaluator.evaluate(inventory_id))
            except Exception:
                failed += 1
                logger.exception(
                    "stock_critical_sweep_record_failed",
                    extra={"inventory_id": str(inventory_id)},
                )
        counts = Counter(r.action for r in results)
        logger.info(
            "stock_critical_sweep_completed",
            extra={
                "evaluated": len(results),
                "failed_count": failed,
                **{f"{a.value}_count": counts[a] for a in TransitionAction},
            },
        )
    return results
