"""
Settings loader (``stock_config.loader``).

Responsibility
--------------
Reads the YAML settings file and parses it into ``stock_config.schema``
dataclasses. Runtime callers use ``stock_config.get_active_settings()``.

Failure modes
-------------
* Missing file -> ``FileNotFoundError`` propagates.
* Malformed YAML -> ``yaml.YAMLError`` propagates.
* Unknown category names, bad cooldowns, bad templates -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from stock_config.schema import (
    CategorySettings,
    ImportSettings,
    NotificationSettings,
    StockCriticalSettings,
    StockSettings,
    SubstringRuleSettings,
)
from stock_kernel.domain.categories import ProductKind


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_category(value: Any, where: str) -> ProductKind:
    try:
        return ProductKind(str(value).strip())
    except ValueError:
        allowed = ", ".join(k.value for k in ProductKind)
        raise ValueError(f"{where}: unknown category {value!r} (allowed: {allowed})") from None


def parse_stock_critical(data: dict[str, Any]) -> StockCriticalSettings:
    notification = data.get("notification") or {}
    defaults = NotificationSettings()
    return StockCriticalSettings(
        default_cooldown_minutes=data.get("default_cooldown_minutes", 360),
        channel=data.get("channel", "system"),
        notification=NotificationSettings(
            kind=notification.get("kind", defaults.kind),
            reference_table=notification.get("reference_table", defaults.reference_table),
            title=notification.get("title", defaults.title),
            reminder_title=notification.get("reminder_title", defaults.reminder_title),
            detail=notification.get("detail", defaults.detail),
        ),
    )


def parse_categories(data: dict[str, Any]) -> CategorySettings:
    synonyms = {
        str(label): parse_category(kind, f"product_categories.synonyms.{label}")
        for label, kind in (data.get("synonyms") or {}).items()
    }
    rules = tuple(
        SubstringRuleSettings(
            contains=str(item["contains"]),
            category=parse_category(item["category"], "product_categories.substring_rules"),
        )
        for item in (data.get("substring_rules") or [])
    )
    return CategorySettings(synonyms=synonyms, substring_rules=rules)


def parse_import(data: dict[str, Any]) -> ImportSettings:
    return ImportSettings(
        header_row=int(data["header_row"]) if data.get("header_row") is not None else None,
        max_rows=int(data.get("max_rows", 20000)),
    )


def parse_settings(data: dict[str, Any], source_path: str | None = None) -> StockSettings:
    return StockSettings(
        stock_critical=parse_stock_critical(data.get("stock_critical") or {}),
        categories=parse_categories(data.get("product_categories") or {}),
        imports=parse_import(data.get("import") or {}),
        source_path=source_path,
        checksum=compute_checksum(data),
    )


def load_settings(path: Path) -> StockSettings:
    return parse_settings(load_yaml_file(path), source_path=str(path))
