"""
XLSX source adapter for inventory spreadsheets.

Supports flexible layout:
  - sheet by index (0-based) or name (default: first sheet)
  - header row by 1-based number or auto-detect (scans the first rows for
    inventory column names: sku, codigo, nombre, tipo, precio, stock, minimo)
  - normalizes cell values (strip strings, integral floats -> int, blank -> "")

Every yielded dict carries its sheet row number under SOURCE_ROW_KEY.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterator

import openpyxl

from stock_ingestion.adapters.base import SOURCE_ROW_KEY, SourceProbe

_HEADER_KEYWORDS = frozenset({
    "sku", "codigo", "código", "code",
    "nombre", "name", "producto",
    "tipo", "categoria", "categoría", "category",
    "precio", "price",
    "stock", "cantidad",
    "minimo", "mínimo", "minimum",
    "fotourl", "foto", "photo",
})

_MAX_SCAN_ROWS = 15


def _normalize_header_cell(value: Any) -> str:
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return value.strip()
    return value


def _header_score(values: tuple) -> int:
    return sum(
        1
        for v in values
        if isinstance(v, str) and v.strip().lower().replace(" ", "") in _HEADER_KEYWORDS
    )


def _detect_header_index(rows: list[tuple], min_keywords: int = 2) -> int:
    for i, values in enumerate(rows[:_MAX_SCAN_ROWS]):
        if _header_score(values) >= min_keywords:
            return i
    return 0


def _headers(values: tuple) -> list[str]:
    headers: list[str] = []
    for c, v in enumerate(values):
        key = _normalize_header_cell(v) or f"Column_{c + 1}"
        base, cnt = key, 0
        while key in headers:
            cnt += 1
            key = f"{base}_{cnt}"
        headers.append(key)
    return headers


class XlsxSourceAdapter:
    """
    Read .xlsx files as one dict per row.

    source_options:
      sheet: 0-based sheet index (int) or sheet name (str). Default: first sheet.
      header_row: 1-based row number of the header. If omitted, the first of
        the top rows with at least two inventory column names is used, else row 1.
      max_rows: stop after this many sheet rows (default 100000).
    """

    def _load(self, source_path: Path):
        return openpyxl.load_workbook(source_path, read_only=True, data_only=True)

    def _get_sheet(self, wb: Any, options: dict[str, Any]) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return wb.worksheets[0]
        if isinstance(sheet_ref, int):
            return wb.worksheets[sheet_ref]
        return wb[sheet_ref]

    def _rows(self, sheet: Any, max_rows: int) -> list[tuple]:
        return [
            tuple(_cell_value(v) for v in values)
            for values in sheet.iter_rows(min_row=1, max_row=max_rows, values_only=True)
        ]

    def _header_index(self, rows: list[tuple], options: dict[str, Any]) -> int:
        header_row = options.get("header_row")
        if header_row is not None:
            return int(header_row) - 1
        return _detect_header_index(rows)

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        wb = self._load(source_path)
        try:
            sheet = self._get_sheet(wb, options)
            rows = self._rows(sheet, int(options.get("max_rows", 100_000)))
            if not rows:
                return
            hi = self._header_index(rows, options)
            headers = _headers(rows[hi])

            for offset, values in enumerate(rows[hi + 1:], start=hi + 2):
                if not any(v != "" for v in values):
                    continue
                record = dict(zip(headers, values))
                record[SOURCE_ROW_KEY] = offset
                yield record
        finally:
            wb.close()

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        wb = self._load(source_path)
        try:
            sheet = self._get_sheet(wb, options)
            rows = self._rows(sheet, 500)
            if not rows:
                return SourceProbe(row_count=0, columns=(), sample_rows=())
            hi = self._header_index(rows, options)
            headers = _headers(rows[hi])
            data_rows = [r for r in rows[hi + 1:] if any(v != "" for v in r)]
            return SourceProbe(
                row_count=len(data_rows),
                columns=tuple(headers),
                sample_rows=tuple(dict(zip(headers, r)) for r in data_rows[:5]),
            )
        finally:
            wb.close()
