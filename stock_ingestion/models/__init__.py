"""Import log ORM models (batches and per-row results)."""

from stock_ingestion.models.import_log import ImportBatchModel, ImportRowModel

__all__ = ["ImportBatchModel", "ImportRowModel"]
