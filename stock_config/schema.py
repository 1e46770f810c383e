"""
Settings schema (``stock_config.schema``).

Frozen dataclasses for every configurable value. Each validates itself in
``__post_init__`` so an invalid file fails at load time, never halfway
through an evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from string import Formatter

from stock_kernel.domain.categories import ProductKind


def _placeholders(template: str) -> set[str]:
    return {name for _, name, _, _ in Formatter().parse(template) if name}


@dataclass(frozen=True)
class NotificationSettings:
    kind: str = "STOCK_CRITICO"
    reference_table: str = "Inventario"
    title: str = "Stock crítico: {name}"
    reminder_title: str = "Stock crítico (recordatorio): {name}"
    detail: str = "Stock {stock} (mínimo {threshold})."

    def __post_init__(self) -> None:
        if not self.kind:
            raise ValueError("notification.kind must not be empty")
        for label, template, allowed in (
            ("title", self.title, {"name"}),
            ("reminder_title", self.reminder_title, {"name"}),
            ("detail", self.detail, {"stock", "threshold"}),
        ):
            unknown = _placeholders(template) - allowed
            if unknown:
                raise ValueError(
                    f"notification.{label} uses unknown placeholders: {sorted(unknown)}"
                )


@dataclass(frozen=True)
class StockCriticalSettings:
    default_cooldown_minutes: int = 360
    channel: str = "system"
    notification: NotificationSettings = field(default_factory=NotificationSettings)

    def __post_init__(self) -> None:
        if isinstance(self.default_cooldown_minutes, bool) or not isinstance(
            self.default_cooldown_minutes, int
        ):
            raise ValueError("default_cooldown_minutes must be an integer")
        if self.default_cooldown_minutes <= 0:
            raise ValueError(
                f"default_cooldown_minutes must be positive, got {self.default_cooldown_minutes}"
            )
        if not self.channel:
            raise ValueError("channel must not be empty")


@dataclass(frozen=True)
class SubstringRuleSettings:
    contains: str
    category: ProductKind

    def __post_init__(self) -> None:
        if not self.contains.strip():
            raise ValueError("substring rule 'contains' must not be empty")


@dataclass(frozen=True)
class CategorySettings:
    synonyms: dict[str, ProductKind] = field(default_factory=dict)
    substring_rules: tuple[SubstringRuleSettings, ...] = ()

    def __post_init__(self) -> None:
        seen: dict[str, ProductKind] = {}
        for label, kind in self.synonyms.items():
            key = label.strip().lower()
            if not key:
                raise ValueError("category synonym labels must not be empty")
            if key in seen and seen[key] is not kind:
                raise ValueError(
                    f"category synonym {label!r} maps to both {seen[key].value} and {kind.value}"
                )
            seen[key] = kind


@dataclass(frozen=True)
class ImportSettings:
    header_row: int | None = None  # None: detect from the sheet
    max_rows: int = 20000

    def __post_init__(self) -> None:
        if self.header_row is not None and self.header_row < 1:
            raise ValueError("import.header_row must be >= 1")
        if self.max_rows < 1:
            raise ValueError("import.max_rows must be >= 1")


@dataclass(frozen=True)
class StockSettings:
    stock_critical: StockCriticalSettings = field(default_factory=StockCriticalSettings)
    categories: CategorySettings = field(default_factory=CategorySettings)
    imports: ImportSettings = field(default_factory=ImportSettings)
    source_path: str | None = None
    checksum: str | None = None
