"""Services for the stock kernel (write side)."""

from stock_kernel.services.alert_service import AlertService
from stock_kernel.services.base import SYSTEM_ACTOR_ID
from stock_kernel.services.inventory_service import InventoryService
from stock_kernel.services.movement_service import MovementService
from stock_kernel.services.product_service import ProductService, ProductUpsert
from stock_kernel.services.rule_service import StockCriticalRuleService
from stock_kernel.services.stock_critical_evaluator import StockCriticalEvaluator
from stock_kernel.services.sweep import sweep_stock_critical
from stock_kernel.services.unit_of_work import StockUnitOfWork

__all__ = [
    "AlertService",
    "InventoryService",
    "MovementService",
    "ProductService",
    "ProductUpsert",
    "StockCriticalEvaluator",
    "StockCriticalRuleService",
    "StockUnitOfWork",
    "SYSTEM_ACTOR_ID",
    "sweep_stock_critical",
]
