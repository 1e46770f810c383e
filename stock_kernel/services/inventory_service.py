"""
InventoryService -- direct create/edit/delete of inventory records.

Responsibility:
    Writes inventory records outside the movement ledger (manual edits and
    the bulk import) and runs the stock-critical evaluator in the same
    transaction whenever stock or the minimum threshold may have changed.

Architecture position:
    Kernel > Services. Flushes, never commits.

Invariants enforced:
    - Only stock-tracked products get an inventory record.
    - One record per product; codes are unique.
    - An edit re-evaluates only when stock or minimum_threshold actually
      changed; other edits report ``noop``.

Failure modes:
    - ProductNotFoundError (PRODUCTO_NOT_FOUND) on create for a missing product.
    - ProductIsFreightError (PRODUCTO_ES_FLETE) for non-stock categories.
    - InventoryNotFoundError (INV_NOT_FOUND) on edit/delete.
    - DuplicateRecordError on product or code conflicts.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.domain.commands import InventoryCreate, InventoryUpdate
from stock_kernel.domain.dtos import InventoryMutationResult
from stock_kernel.domain.stock_critical import StockCriticalPolicy, TransitionResult
from stock_kernel.exceptions import (
    DuplicateRecordError,
    InventoryNotFoundError,
    ProductIsFreightError,
    ProductNotFoundError,
)
from stock_kernel.logging_config import get_logger
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.product import Product
from stock_kernel.services.base import BaseService
from stock_kernel.services.stock_critical_evaluator import StockCriticalEvaluator

logger = get_logger("services.inventory")


class InventoryService(BaseService[InventoryRecord]):

    def __init__(
        self,
        session: Session,
        clock: Clock,
        policy: StockCriticalPolicy | None = None,
    ):
        super().__init__(session)
        self.clock = clock
        self.policy = policy or StockCriticalPolicy()

    def _evaluator(self, actor_id: UUID) -> StockCriticalEvaluator:
        return StockCriticalEvaluator(self.session, self.clock, self.policy, actor_id)

    def _get_for_update(self, inventory_id: UUID) -> InventoryRecord:
        inventory = self.session.execute(
            select(InventoryRecord)
            .where(InventoryRecord.id == inventory_id)
            .with_for_update()
        ).scalar_one_or_none()
        if inventory is None:
            raise InventoryNotFoundError(str(inventory_id))
        return inventory

    @staticmethod
    def _require_stock_tracked(product: Product) -> None:
        if not product.tracks_stock:
            raise ProductIsFreightError(str(product.id), product.product_kind.value)

    def create_inventory(self, command: InventoryCreate, actor_id: UUID) -> InventoryMutationResult:
        product = self.session.get(Product, command.product_id)
        if product is None:
            raise ProductNotFoundError(str(command.product_id))
        self._require_stock_tracked(product)

        existing = self.session.execute(
            select(InventoryRecord.id).where(InventoryRecord.product_id == product.id)
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateRecordError(
                "InventoryRecord", f"product {product.id} already has inventory {existing}"
            )

        inventory = InventoryRecord(
            product_id=product.id,
            code=command.code,
            stock=command.stock,
            minimum_threshold=command.minimum_threshold,
            location=command.location,
            created_by_id=actor_id,
        )
        inventory.product = product
        self.session.add(inventory)
        self._flush_unique("InventoryRecord")

        logger.info(
            "inventory_created",
            extra={
                "inventory_id": str(inventory.id),
                "product_id": str(product.id),
                "stock": inventory.stock,
                "minimum_threshold": inventory.minimum_threshold,
            },
        )
        result = self._evaluator(actor_id).evaluate(inventory.id)
        return InventoryMutationResult(inventory=inventory.to_dto(), stock_critical=result)

    def update_inventory(
        self,
        inventory_id: UUID,
        command: InventoryUpdate,
        actor_id: UUID,
    ) -> InventoryMutationResult:
        inventory = self._get_for_update(inventory_id)
        self._require_stock_tracked(inventory.product)

        stock_changed = command.stock is not None and command.stock != inventory.stock
        minimum_changed = (
            command.minimum_threshold is not None
            and command.minimum_threshold != inventory.minimum_threshold
        )

        if command.code is not None:
            inventory.code = command.code.strip() or None
        if command.location is not None:
            inventory.location = command.location.strip() or None
        if stock_changed:
            inventory.stock = command.stock
        if minimum_changed:
            inventory.minimum_threshold = command.minimum_threshold
        inventory.updated_by_id = actor_id
        self._flush_unique("InventoryRecord")

        logger.info(
            "inventory_updated",
            extra={
                "inventory_id": str(inventory.id),
                "stock_changed": stock_changed,
                "minimum_changed": minimum_changed,
            },
        )
        if stock_changed or minimum_changed:
            result = self._evaluator(actor_id).evaluate(inventory.id)
        else:
            result = TransitionResult.noop()
        return InventoryMutationResult(inventory=inventory.to_dto(), stock_critical=result)

    def delete_inventory(self, inventory_id: UUID) -> None:
        """Delete a record together with its movements, alerts and rule."""
        inventory = self._get_for_update(inventory_id)
        self.session.delete(inventory)
        self.session.flush()
        logger.info("inventory_deleted", extra={"inventory_id": str(inventory_id)})

    def upsert_for_product(
        self,
        product: Product,
        *,
        code: str | None,
        stock: int,
        minimum_threshold: int,
        actor_id: UUID,
    ) -> tuple[InventoryMutationResult, bool]:
        """
        Create or overwrite the inventory record of ``product`` and evaluate it.

        Used by the bulk import, where a row carries the full record.

        Returns:
            (result, created)
        """
        self._require_stock_tracked(product)
        inventory = self.session.execute(
            select(InventoryRecord)
            .where(InventoryRecord.product_id == product.id)
            .with_for_update()
        ).scalar_one_or_none()

        created = inventory is None
        if created:
            inventory = InventoryRecord(
                product_id=product.id,
                code=code,
                stock=stock,
                minimum_threshold=minimum_threshold,
                created_by_id=actor_id,
            )
            inventory.product = product
            self.session.add(inventory)
        else:
            inventory.code = code
            inventory.stock = stock
            inventory.minimum_threshold = minimum_threshold
            inventory.updated_by_id = actor_id
        self._flush_unique("InventoryRecord")

        result = self._evaluator(actor_id).evaluate(inventory.id)
        return InventoryMutationResult(inventory=inventory.to_dto(), stock_critical=result), created

    def delete_for_product(self, product: Product) -> int:
        """Delete the inventory record of ``product`` if any. Returns the number removed."""
        inventory = self.session.execute(
            select(InventoryRecord).where(InventoryRecord.product_id == product.id)
        ).scalar_one_or_none()
        if inventory is None:
            return 0
        inventory_id = inventory.id
        self.session.delete(inventory)
        self.session.flush()
        logger.info(
            "inventory_deleted",
            extra={"inventory_id": str(inventory_id), "product_id": str(product.id)},
        )
        return 1
