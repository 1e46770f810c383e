"""
stock_ingestion.domain.types -- Pure frozen dataclasses for inventory imports.

ZERO I/O. Imports only from stock_kernel/domain/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from stock_kernel.domain.categories import ProductKind


class ImportBatchStatus(str, Enum):
    COMPLETED = "completed"  # every row committed
    COMPLETED_WITH_ERRORS = "completed_with_errors"  # some rows failed
    FAILED = "failed"  # no row committed


@dataclass(frozen=True)
class ImportRow:
    """One parsed, validated spreadsheet row."""

    row_number: int
    sku: str
    name: str
    kind: ProductKind
    code: str | None
    price: int
    stock: int
    minimum: int
    photo_url: str | None = None


@dataclass(frozen=True)
class RowError:
    row: int
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "error": self.error}


@dataclass(frozen=True)
class RowOutcome:
    """What committing one row changed."""

    product_created: bool = False
    product_updated: bool = False
    inventory_created: bool = False
    inventory_updated: bool = False
    inventory_deleted: bool = False
    inventory_id: UUID | None = None
    stock_critical_action: str | None = None


@dataclass(frozen=True)
class ImportReport:
    """Aggregate result of one import run."""

    total: int
    created_products: int = 0
    updated_products: int = 0
    created_inventories: int = 0
    updated_inventories: int = 0
    deleted_inventories: int = 0
    errors: tuple[RowError, ...] = ()
    batch_id: UUID | None = None
    source_filename: str | None = None
    completed_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def processed(self) -> int:
        return self.total - len(self.errors)

    @property
    def status(self) -> ImportBatchStatus:
        if not self.errors:
            return ImportBatchStatus.COMPLETED
        if self.processed > 0:
            return ImportBatchStatus.COMPLETED_WITH_ERRORS
        return ImportBatchStatus.FAILED

    @property
    def message(self) -> str:
        if self.ok:
            return "Importación completa."
        return f"Importación completada con {len(self.errors)} error(es)."

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "message": self.message,
            "total": self.total,
            "createdProductos": self.created_products,
            "updatedProductos": self.updated_products,
            "createdInventarios": self.created_inventories,
            "updatedInventarios": self.updated_inventories,
            "deletedInventarios": self.deleted_inventories,
            "errores": [e.to_dict() for e in self.errors],
            "batchId": str(self.batch_id) if self.batch_id else None,
        }


@dataclass
class ReportBuilder:
    """Mutable accumulator the import service fills row by row."""

    total: int = 0
    created_products: int = 0
    updated_products: int = 0
    created_inventories: int = 0
    updated_inventories: int = 0
    deleted_inventories: int = 0
    errors: list[RowError] = field(default_factory=list)

    def add_outcome(self, outcome: RowOutcome) -> None:
        self.created_products += int(outcome.product_created)
        self.updated_products += int(outcome.product_updated)
        self.created_inventories += int(outcome.inventory_created)
        self.updated_inventories += int(outcome.inventory_updated)
        self.deleted_inventories += int(outcome.inventory_deleted)

    def add_error(self, row: int, error: str) -> None:
        self.errors.append(RowError(row=row, error=error))

    def build(self, **extra: Any) -> ImportReport:
        return ImportReport(
            total=self.total,
            created_products=self.created_products,
            updated_products=self.updated_products,
            created_inventories=self.created_inventories,
            updated_inventories=self.updated_inventories,
            deleted_inventories=self.deleted_inventories,
            errors=tuple(self.errors),
            **extra,
        )
