"""Source adapters for inventory imports (file I/O only, no DB)."""

from pathlib import Path

from stock_ingestion.adapters.base import SOURCE_ROW_KEY, SourceAdapter, SourceProbe
from stock_ingestion.adapters.csv_adapter import CsvSourceAdapter
from stock_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter

_ADAPTERS_BY_SUFFIX: dict[str, type] = {
    ".xlsx": XlsxSourceAdapter,
    ".xlsm": XlsxSourceAdapter,
    ".csv": CsvSourceAdapter,
}


def adapter_for(source_path: Path) -> SourceAdapter:
    """Pick an adapter from the file extension.

    Raises:
        ValueError: for unsupported extensions.
    """
    suffix = Path(source_path).suffix.lower()
    try:
        return _ADAPTERS_BY_SUFFIX[suffix]()
    except KeyError:
        supported = ", ".join(sorted(_ADAPTERS_BY_SUFFIX))
        raise ValueError(f"Unsupported import file type {suffix!r} (supported: {supported})") from None


__all__ = [
    "SOURCE_ROW_KEY",
    "SourceAdapter",
    "SourceProbe",
    "CsvSourceAdapter",
    "XlsxSourceAdapter",
    "adapter_for",
]
