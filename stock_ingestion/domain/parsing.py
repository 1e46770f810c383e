"""
Row parsing for inventory imports.

Pure functions that turn one raw spreadsheet dict into an ImportRow or a
human-readable error. Messages are shown to the operator next to the
spreadsheet row number, in the spreadsheet's language.

Normalisation rules:
    header keys  -> trimmed, inner whitespace removed, lower-cased
    sku          -> "SKU-12" | "12" | "sku 12" | "SKU#12" all become "SKU-12";
                    anything else is upper-cased
    codigo       -> same rules with the "INV-" prefix
    numbers      -> truncated to int; negative or non-numeric fall back to 0;
                    values above the column range reject the row
"""

from __future__ import annotations

import math
import re
from typing import Any

from stock_ingestion.domain.types import ImportRow
from stock_kernel.domain.categories import CategoryMap
from stock_kernel.domain.commands import MAX_STORED_INT

ERR_SKU_REQUIRED = "sku es obligatorio"
ERR_NAME_REQUIRED = "nombre es obligatorio"
ERR_INVALID_KIND = "tipo inválido. Valores permitidos: {allowed}"
ERR_CODE_REQUIRED = "codigo es obligatorio para Producto (INV-xxx)"
ERR_OUT_OF_RANGE = "{field} fuera de rango (máximo {maximum})"
ERR_DUPLICATE = "Duplicado (SKU o código ya existe)"
ERR_UNKNOWN = "Error desconocido"

_WHITESPACE = re.compile(r"\s+")


def normalize_header_key(key: Any) -> str:
    return _WHITESPACE.sub("", str(key).strip()).lower()


def normalize_row_keys(raw: dict[str, Any]) -> dict[str, Any]:
    return {normalize_header_key(k): v for k, v in raw.items()}


def _normalize_prefixed(raw: Any, prefix: str) -> str | None:
    s = "" if raw is None else str(raw).strip()
    if not s:
        return None
    if re.fullmatch(rf"{prefix}-\d+", s, flags=re.IGNORECASE):
        return s.upper()
    if re.fullmatch(r"\d+", s):
        return f"{prefix}-{s}"
    m = re.fullmatch(rf"{prefix}\D*(\d+)", s, flags=re.IGNORECASE)
    if m:
        return f"{prefix}-{m.group(1)}"
    return s.upper()


def normalize_sku(raw: Any) -> str | None:
    return _normalize_prefixed(raw, "SKU")


def normalize_inventory_code(raw: Any) -> str | None:
    return _normalize_prefixed(raw, "INV")


def to_int(raw: Any, default: int = 0) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return default
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return math.trunc(number)


def to_non_negative_int(raw: Any, default: int = 0) -> int:
    n = to_int(raw, default)
    return default if n < 0 else n


def _text(raw: Any) -> str:
    return "" if raw is None else str(raw).strip()


def parse_import_row(
    raw: dict[str, Any],
    row_number: int,
    categories: CategoryMap,
) -> ImportRow | str:
    """
    Parse one row (keys already normalised).

    Returns:
        An ImportRow, or the error message for the row.
    """
    sku = normalize_sku(raw.get("sku"))
    code = normalize_inventory_code(raw.get("codigo"))
    name = _text(raw.get("nombre"))
    kind = categories.resolve(_text(raw.get("tipo")) or None)
    photo_url = _text(raw.get("fotourl")) or None

    if not sku:
        return ERR_SKU_REQUIRED
    if not name:
        return ERR_NAME_REQUIRED
    if kind is None:
        return ERR_INVALID_KIND.format(allowed=CategoryMap.allowed_values())
    if kind.tracks_stock and not code:
        return ERR_CODE_REQUIRED

    numbers = {field: to_non_negative_int(raw.get(field)) for field in ("precio", "stock", "minimo")}
    for field, value in numbers.items():
        if value > MAX_STORED_INT:
            return ERR_OUT_OF_RANGE.format(field=field, maximum=MAX_STORED_INT)

    return ImportRow(
        row_number=row_number,
        sku=sku,
        name=name,
        kind=kind,
        code=code,
        price=numbers["precio"],
        stock=numbers["stock"],
        minimum=numbers["minimo"],
        photo_url=photo_url,
    )
