"""
stock_ingestion.domain -- Pure types and row parsing for inventory imports.

ZERO I/O. Imports only from stock_kernel/domain/.
"""

from stock_ingestion.domain.parsing import (
    normalize_header_key,
    normalize_inventory_code,
    normalize_sku,
    parse_import_row,
)
from stock_ingestion.domain.types import (
    ImportBatchStatus,
    ImportReport,
    ImportRow,
    RowError,
    RowOutcome,
)

__all__ = [
    "ImportBatchStatus",
    "ImportReport",
    "ImportRow",
    "RowError",
    "RowOutcome",
    "normalize_header_key",
    "normalize_inventory_code",
    "normalize_sku",
    "parse_import_row",
]
