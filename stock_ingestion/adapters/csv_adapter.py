"""
CSV source adapter for inventory imports.

Uses csv.DictReader. Configurable: delimiter, encoding, quoting. Handles
BOM via utf-8-sig when encoding is utf-8. Streams rows; each dict carries
its line number under SOURCE_ROW_KEY (header is line 1).
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterator

from stock_ingestion.adapters.base import SOURCE_ROW_KEY, SourceProbe

_QUOTING = {
    "minimal": csv.QUOTE_MINIMAL,
    "all": csv.QUOTE_ALL,
    "nonnumeric": csv.QUOTE_NONNUMERIC,
    "none": csv.QUOTE_NONE,
}


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() == "utf-8":
        return "utf-8-sig"
    return enc


def _get_quoting(options: dict[str, Any]) -> int:
    q = options.get("quoting", "minimal")
    if isinstance(q, int):
        return q
    return _QUOTING.get(str(q).lower(), csv.QUOTE_MINIMAL)


def _is_blank(row: dict[str, Any]) -> bool:
    return not any((v or "").strip() for k, v in row.items() if k is not None and isinstance(v, str))


class CsvSourceAdapter:

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        with Path(source_path).open("r", encoding=_get_encoding(options), newline="") as f:
            reader = csv.DictReader(
                f,
                delimiter=options.get("delimiter", ","),
                quoting=_get_quoting(options),
            )
            for row in reader:
                if _is_blank(row):
                    continue
                record = {k: v for k, v in row.items() if k is not None}
                record[SOURCE_ROW_KEY] = reader.line_num
                yield record

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        encoding = _get_encoding(options)
        delimiter = options.get("delimiter", ",")
        with Path(source_path).open("r", encoding=encoding, newline="") as f:
            reader = csv.DictReader(f, delimiter=delimiter, quoting=_get_quoting(options))
            columns = tuple(reader.fieldnames or ())
            sample: list[dict[str, Any]] = []
            count = 0
            for row in reader:
                if _is_blank(row):
                    continue
                count += 1
                if len(sample) < 5:
                    sample.append(dict(row))
        return SourceProbe(
            row_count=count,
            columns=columns,
            sample_rows=tuple(sample),
            encoding=encoding,
            detected_delimiter=delimiter,
        )
