"""
Tests for InventoryService.

Covers:
- Create (evaluation, non-stock products, duplicates)
- Edit (evaluation only on stock / minimum change)
- Delete (cascade of movements, alerts and rule)
- Import helpers (upsert_for_product, delete_for_product)
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from stock_kernel.domain.categories import ProductKind
from stock_kernel.domain.commands import InventoryCreate, InventoryUpdate, MovementCommand, RuleUpdate
from stock_kernel.domain.movements import MovementKind
from stock_kernel.domain.stock_critical import TransitionAction
from stock_kernel.exceptions import (
    DuplicateRecordError,
    InventoryNotFoundError,
    ProductIsFreightError,
    ProductNotFoundError,
    ValidationFailedError,
)
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.stock_alert import StockAlert
from stock_kernel.models.stock_critical_rule import StockCriticalRule
from stock_kernel.models.stock_movement import StockMovement
from stock_kernel.services.inventory_service import InventoryService
from stock_kernel.services.movement_service import MovementService
from stock_kernel.services.rule_service import StockCriticalRuleService


@pytest.fixture
def inventories(session, deterministic_clock):
    return InventoryService(session, deterministic_clock)


class TestCreateInventory:

    def test_create_healthy_record(self, inventories, make_product, test_actor_id):
        product = make_product()

        result = inventories.create_inventory(
            InventoryCreate(product.id, stock=20, minimum_threshold=5, code="INV-100", location=" Bodega 1 "),
            test_actor_id,
        )

        assert result.inventory.product_id == product.id
        assert result.inventory.stock == 20
        assert result.inventory.code == "INV-100"
        assert result.inventory.location == "Bodega 1"
        assert result.stock_critical.action is TransitionAction.NOOP

    def test_create_critical_record_opens_alert(self, session, inventories, make_product, test_actor_id):
        product = make_product()

        result = inventories.create_inventory(
            InventoryCreate(product.id, stock=0, minimum_threshold=5), test_actor_id
        )

        assert result.stock_critical.action is TransitionAction.CREATED
        assert result.to_dict()["stockCritical"]["action"] == "created"
        assert session.get(StockAlert, result.stock_critical.alert_id) is not None

    def test_missing_product(self, inventories, test_actor_id):
        with pytest.raises(ProductNotFoundError) as exc_info:
            inventories.create_inventory(InventoryCreate(uuid4()), test_actor_id)

        assert exc_info.value.code == "PRODUCTO_NOT_FOUND"

    @pytest.mark.parametrize("kind", [ProductKind.FREIGHT, ProductKind.SERVICE])
    def test_non_stock_product_rejected(self, inventories, make_product, test_actor_id, kind):
        product = make_product(name="Flete", kind=kind)

        with pytest.raises(ProductIsFreightError):
            inventories.create_inventory(InventoryCreate(product.id), test_actor_id)

    def test_second_record_for_product_rejected(self, inventories, make_product, test_actor_id):
        product = make_product()
        inventories.create_inventory(InventoryCreate(product.id, stock=10), test_actor_id)

        with pytest.raises(DuplicateRecordError) as exc_info:
            inventories.create_inventory(InventoryCreate(product.id, stock=10), test_actor_id)

        assert exc_info.value.http_status == 409

    def test_duplicate_code_rejected(self, inventories, make_product, test_actor_id):
        inventories.create_inventory(InventoryCreate(make_product().id, code="INV-1"), test_actor_id)

        with pytest.raises(DuplicateRecordError):
            inventories.create_inventory(InventoryCreate(make_product().id, code="INV-1"), test_actor_id)

    def test_negative_values_fail_validation(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            InventoryCreate(uuid4(), stock=-1, minimum_threshold=-2)

        assert {e.field for e in exc_info.value.errors} == {"stock", "minimum_threshold"}


class TestUpdateInventory:

    def test_stock_change_evaluates(self, inventories, make_inventory, test_actor_id):
        inventory = make_inventory(stock=10, minimum_threshold=5)

        result = inventories.update_inventory(inventory.id, InventoryUpdate(stock=2), test_actor_id)

        assert result.inventory.stock == 2
        assert result.stock_critical.action is TransitionAction.CREATED

    def test_minimum_change_evaluates(self, inventories, make_inventory, test_actor_id):
        inventory = make_inventory(stock=10, minimum_threshold=5)

        result = inventories.update_inventory(
            inventory.id, InventoryUpdate(minimum_threshold=10), test_actor_id
        )

        assert result.stock_critical.action is TransitionAction.CREATED

    def test_same_values_do_not_evaluate(self, session, inventories, make_inventory, test_actor_id):
        inventory = make_inventory(stock=2, minimum_threshold=5)

        result = inventories.update_inventory(
            inventory.id, InventoryUpdate(stock=2, minimum_threshold=5), test_actor_id
        )

        assert result.stock_critical.action is TransitionAction.NOOP
        count = session.execute(
            select(func.count(StockAlert.id)).where(StockAlert.inventory_id == inventory.id)
        ).scalar_one()
        assert count == 0

    def test_location_only_edit_does_not_evaluate(self, inventories, make_inventory, test_actor_id):
        inventory = make_inventory(stock=0, minimum_threshold=5)

        result = inventories.update_inventory(
            inventory.id, InventoryUpdate(location="Bodega 2"), test_actor_id
        )

        assert result.inventory.location == "Bodega 2"
        assert result.stock_critical.action is TransitionAction.NOOP

    def test_empty_code_clears_it(self, inventories, make_inventory, test_actor_id):
        inventory = make_inventory(code="INV-9")

        result = inventories.update_inventory(inventory.id, InventoryUpdate(code=""), test_actor_id)

        assert result.inventory.code is None

    def test_missing_record(self, inventories, test_actor_id):
        with pytest.raises(InventoryNotFoundError):
            inventories.update_inventory(uuid4(), InventoryUpdate(stock=1), test_actor_id)


class TestDeleteInventory:

    def test_delete_cascades_history(
        self, session, inventories, make_inventory, deterministic_clock, test_actor_id
    ):
        inventory = make_inventory(stock=10, minimum_threshold=5)
        MovementService(session, deterministic_clock).post_movement(
            MovementCommand(inventory.id, MovementKind.EXIT, 8), test_actor_id
        )
        StockCriticalRuleService(session).set_rule(
            inventory.id, RuleUpdate(cooldown_minutes=10), test_actor_id
        )
        inventory_id = inventory.id

        inventories.delete_inventory(inventory_id)

        assert session.get(InventoryRecord, inventory_id) is None
        for model in (StockMovement, StockAlert, StockCriticalRule):
            remaining = session.execute(
                select(func.count(model.id)).where(model.inventory_id == inventory_id)
            ).scalar_one()
            assert remaining == 0

    def test_missing_record(self, inventories):
        with pytest.raises(InventoryNotFoundError):
            inventories.delete_inventory(uuid4())


class TestImportHelpers:

    def test_upsert_creates_then_overwrites(self, inventories, make_product, test_actor_id):
        product = make_product()

        created, was_created = inventories.upsert_for_product(
            product, code="INV-7", stock=10, minimum_threshold=2, actor_id=test_actor_id
        )
        updated, was_created_again = inventories.upsert_for_product(
            product, code="INV-7", stock=1, minimum_threshold=2, actor_id=test_actor_id
        )

        assert was_created is True
        assert was_created_again is False
        assert updated.inventory.id == created.inventory.id
        assert updated.inventory.stock == 1
        assert updated.stock_critical.action is TransitionAction.CREATED

    def test_upsert_rejects_non_stock_product(self, inventories, make_product, test_actor_id):
        product = make_product(kind=ProductKind.SERVICE)

        with pytest.raises(ProductIsFreightError):
            inventories.upsert_for_product(
                product, code="INV-8", stock=1, minimum_threshold=0, actor_id=test_actor_id
            )

    def test_delete_for_product(self, inventories, make_inventory):
        inventory = make_inventory()

        assert inventories.delete_for_product(inventory.product) == 1
        assert inventories.delete_for_product(inventory.product) == 0
