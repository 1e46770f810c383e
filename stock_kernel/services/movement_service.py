"""
MovementService -- posts entries, exits and adjustments to the ledger.

Responsibility:
    Applies one validated MovementCommand: locks the inventory record,
    computes the new stock, rejects negative results, appends the movement,
    updates stock and evaluates the stock-critical state, all in the
    caller's transaction.

Architecture position:
    Kernel > Services. Flushes, never commits.

Invariants enforced:
    - Completed movements never leave stock below zero. A rejected movement
      writes nothing: the check runs before the first session.add().
    - The evaluation sees the post-movement stock in the same transaction.

Failure modes:
    - InventoryNotFoundError (INV_NOT_FOUND)
    - ProductIsFreightError (PRODUCTO_ES_FLETE)
    - NegativeStockError (STOCK_NEGATIVO)
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.domain.commands import MovementCommand
from stock_kernel.domain.dtos import MovementResult
from stock_kernel.domain.movements import apply_movement
from stock_kernel.domain.stock_critical import StockCriticalPolicy
from stock_kernel.exceptions import (
    InventoryNotFoundError,
    NegativeStockError,
    ProductIsFreightError,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.stock_movement import StockMovement
from stock_kernel.services.base import BaseService
from stock_kernel.services.stock_critical_evaluator import StockCriticalEvaluator

logger = get_logger("services.movement")


class MovementService(BaseService[StockMovement]):

    def __init__(
        self,
        session: Session,
        clock: Clock,
        policy: StockCriticalPolicy | None = None,
    ):
        super().__init__(session)
        self.clock = clock
        self.policy = policy or StockCriticalPolicy()

    def post_movement(self, command: MovementCommand, actor_id: UUID) -> MovementResult:
        with LogContext.bind(inventory_id=command.inventory_id, actor_id=actor_id):
            inventory = self.session.execute(
                select(InventoryRecord)
                .where(InventoryRecord.id == command.inventory_id)
                .with_for_update()
            ).scalar_one_or_none()
            if inventory is None:
                raise InventoryNotFoundError(str(command.inventory_id))

            product = inventory.product
            if not product.tracks_stock:
                raise ProductIsFreightError(str(product.id), product.product_kind.value)

            current = inventory.stock
            new_stock = apply_movement(current, command.kind, command.quantity)
            if new_stock < 0:
                logger.warning(
                    "movement_rejected_negative_stock",
                    extra={
                        "kind": command.kind.value,
                        "quantity": command.quantity,
                        "current_stock": current,
                    },
                )
                raise NegativeStockError(str(inventory.id), current, new_stock)

            movement = StockMovement(
                inventory_id=inventory.id,
                kind=command.kind,
                quantity=command.quantity,
                note=command.note,
                created_by_id=actor_id,
            )
            movement.inventory = inventory
            self.session.add(movement)
            inventory.stock = new_stock
            inventory.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "movement_posted",
                extra={
                    "movement_id": str(movement.id),
                    "kind": command.kind.value,
                    "quantity": command.quantity,
                    "stock_before": current,
                    "stock_after": new_stock,
                },
            )

            evaluator = StockCriticalEvaluator(self.session, self.clock, self.policy, actor_id)
            result = evaluator.evaluate(inventory.id)

            return MovementResult(
                movement=movement.to_dto(),
                inventory=inventory.to_dto(),
                stock_critical=result,
            )
