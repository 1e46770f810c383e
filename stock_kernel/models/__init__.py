"""ORM models for the stock kernel."""

from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.notification import Notification
from stock_kernel.models.product import Product
from stock_kernel.models.stock_alert import StockAlert
from stock_kernel.models.stock_critical_rule import StockCriticalRule
from stock_kernel.models.stock_movement import StockMovement

__all__ = [
    "InventoryRecord",
    "Notification",
    "Product",
    "StockAlert",
    "StockCriticalRule",
    "StockMovement",
    "import_all_models",
]


def import_all_models() -> None:
    """Import every mapped module so Base.metadata knows all tables.

    Ingestion staging tables live outside the kernel; they are pulled in
    here so create_tables()/drop_tables() cover the whole schema.
    """
    import stock_ingestion.models  # noqa: F401
