"""Inventory import services."""

from stock_ingestion.services.import_service import InventoryImportService

__all__ = ["InventoryImportService"]
