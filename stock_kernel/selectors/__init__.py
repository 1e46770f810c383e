"""Selectors for the stock kernel (read side)."""

from stock_kernel.selectors.alert_selector import AlertSelector
from stock_kernel.selectors.inventory_selector import InventorySelector

__all__ = ["AlertSelector", "InventorySelector"]
