"""
Source adapter protocol and probe DTO.

Contract:
    SourceAdapter.read() yields one dict per non-empty source row. Each
    dict carries the row's position in the file under ``SOURCE_ROW_KEY``
    (1-based, header included), so errors can point at the spreadsheet row
    an operator sees.
    SourceAdapter.probe() returns a quick snapshot: row count, columns,
    sample rows.

Architecture: stock_ingestion/adapters. File I/O only, no DB or kernel imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Protocol, runtime_checkable

SOURCE_ROW_KEY = "_source_row"


@runtime_checkable
class SourceAdapter(Protocol):

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Yield one dict per source row. Streams where the format allows."""
        ...

    def probe(self, source_path: Path, options: dict[str, Any]) -> "SourceProbe":
        ...


@dataclass(frozen=True)
class SourceProbe:
    """Result of probing a source file (row count, columns, first rows)."""

    row_count: int
    columns: tuple[str, ...]
    sample_rows: tuple[dict[str, Any], ...]
    encoding: str | None = None
    detected_delimiter: str | None = None
