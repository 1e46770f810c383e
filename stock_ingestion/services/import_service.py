"""
InventoryImportService -- bulk upsert of products and inventory from a file.

Contract:
    import_file(path, actor_id) reads a spreadsheet through a source adapter
    and applies every row; import_rows(rows, actor_id) does the same for
    already-read dicts. Each row runs in its own transaction, so a failed
    row never rolls back the rows before or after it. The run ends with an
    ImportReport and an import batch log written in a final transaction.

Row semantics:
    - keys are normalised (trimmed, whitespace removed, lower-cased)
    - sku / codigo are normalised to SKU-n / INV-n
    - the product is upserted by SKU; both prices are set from ``precio``
    - stock-tracked categories upsert the inventory record and run the
      stock-critical evaluation; other categories delete any inventory
      record the product had
    - unique violations are reported as duplicates, anything unexpected as
      an unknown error (logged with its traceback); the row number is the
      one shown in the spreadsheet

Architecture: stock_ingestion/services. Uses kernel services for writes.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from stock_ingestion.adapters import SOURCE_ROW_KEY, SourceAdapter, adapter_for
from stock_ingestion.domain.parsing import (
    ERR_DUPLICATE,
    ERR_UNKNOWN,
    normalize_row_keys,
    parse_import_row,
)
from stock_ingestion.domain.types import ImportReport, ImportRow, ReportBuilder, RowOutcome
from stock_ingestion.models.import_log import ImportBatchModel, ImportRowModel, to_json_safe
from stock_kernel.db.engine import transaction_scope
from stock_kernel.domain.categories import DEFAULT_CATEGORY_MAP, CategoryMap
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.stock_critical import StockCriticalPolicy
from stock_kernel.exceptions import DuplicateRecordError, ImportSourceError, StockKernelError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.services.inventory_service import InventoryService
from stock_kernel.services.product_service import ProductService, ProductUpsert

logger = get_logger("ingestion.import_service")

_PRODUCER = "inventory_import"


class InventoryImportService:
    """
    Apply an inventory spreadsheet row by row.

    Takes a session factory rather than a session: every row commits on its
    own, which a single caller-owned transaction cannot express.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        policy: StockCriticalPolicy | None = None,
        categories: CategoryMap | None = None,
        adapters: dict[str, SourceAdapter] | None = None,
        header_row: int | None = None,
        max_rows: int = 20_000,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._policy = policy or StockCriticalPolicy()
        self._categories = categories or DEFAULT_CATEGORY_MAP
        self._adapters = adapters or {}
        self._header_row = header_row
        self._max_rows = max_rows

    def _adapter(self, source_path: Path) -> SourceAdapter:
        suffix = source_path.suffix.lower()
        if suffix in self._adapters:
            return self._adapters[suffix]
        try:
            return adapter_for(source_path)
        except ValueError as exc:
            raise ImportSourceError(source_path.name, str(exc)) from exc

    def import_file(
        self,
        source_path: Path | str,
        actor_id: UUID,
        options: dict[str, Any] | None = None,
    ) -> ImportReport:
        """
        Read ``source_path`` and import every data row.

        Raises:
            ImportSourceError: unsupported type, missing file, no data rows,
                or more rows than ``max_rows``.
        """
        source_path = Path(source_path)
        if not source_path.exists():
            raise ImportSourceError(source_path.name, "file not found")
        adapter = self._adapter(source_path)
        opts = dict(options or {})
        if self._header_row is not None:
            opts.setdefault("header_row", self._header_row)
        rows = list(adapter.read(source_path, opts))
        return self.import_rows(
            rows,
            actor_id,
            source_filename=source_path.name,
            first_data_row=int(opts["header_row"]) + 1 if "header_row" in opts else None,
        )

    def import_rows(
        self,
        rows: Iterable[dict[str, Any]],
        actor_id: UUID,
        source_filename: str | None = None,
        first_data_row: int | None = None,
    ) -> ImportReport:
        """
        Import already-read rows.

        A row without a ``_source_row`` entry is numbered from its position,
        starting at ``first_data_row`` (default: the row after the header).

        Raises:
            ImportSourceError: no rows, or more than ``max_rows``.
        """
        rows = list(rows)
        source = source_filename or "<rows>"
        if not rows:
            raise ImportSourceError(source, "no data rows")
        if len(rows) > self._max_rows:
            raise ImportSourceError(
                source, f"{len(rows)} rows exceed the limit of {self._max_rows}"
            )

        start = first_data_row if first_data_row is not None else (self._header_row or 1) + 1
        batch_id = uuid4()
        builder = ReportBuilder(total=len(rows))
        row_logs: list[dict[str, Any]] = []

        with LogContext.bind(batch_id=batch_id, producer=_PRODUCER, actor_id=actor_id):
            logger.info(
                "import_started",
                extra={"source_filename": source_filename, "row_count": len(rows)},
            )
            for index, raw in enumerate(rows):
                values = dict(raw)
                row_number = values.pop(SOURCE_ROW_KEY, None) or start + index
                outcome, error = self._process_row(values, row_number, actor_id)
                if error is not None:
                    builder.add_error(row_number, error)
                else:
                    builder.add_outcome(outcome)
                row_logs.append({
                    "row_number": row_number,
                    "raw": to_json_safe(values),
                    "error": error,
                    "outcome": outcome,
                })

            completed_at = self._clock.now()
            report = builder.build(
                source_filename=source_filename,
                completed_at=completed_at,
            )
            report = self._record_batch(report, batch_id, row_logs, actor_id)
            logger.info(
                "import_completed",
                extra={
                    "status": report.status.value,
                    "total": report.total,
                    "error_count": len(report.errors),
                    "created_products": report.created_products,
                    "updated_products": report.updated_products,
                    "created_inventories": report.created_inventories,
                    "updated_inventories": report.updated_inventories,
                    "deleted_inventories": report.deleted_inventories,
                },
            )
        return report

    def _process_row(
        self,
        values: dict[str, Any],
        row_number: int,
        actor_id: UUID,
    ) -> tuple[RowOutcome | None, str | None]:
        parsed = parse_import_row(normalize_row_keys(values), row_number, self._categories)
        if isinstance(parsed, str):
            logger.info("import_row_rejected", extra={"row_number": row_number, "error": parsed})
            return None, parsed

        try:
            with transaction_scope(self._session_factory) as session:
                outcome = self._apply_row(session, parsed, actor_id)
        except (DuplicateRecordError, IntegrityError):
            logger.info("import_row_duplicate", extra={"row_number": row_number, "sku": parsed.sku})
            return None, ERR_DUPLICATE
        except StockKernelError as exc:
            logger.info(
                "import_row_rejected",
                extra={"row_number": row_number, "error_code": exc.code},
            )
            return None, str(exc)
        except SQLAlchemyError:
            logger.exception("import_row_failed", extra={"row_number": row_number})
            return None, ERR_UNKNOWN
        except Exception:
            # Any other failure still stays with its row.
            logger.exception(
                "import_row_failed",
                extra={"row_number": row_number, "sku": parsed.sku, "unexpected": True},
            )
            return None, ERR_UNKNOWN
        return outcome, None

    def _apply_row(self, session: Session, row: ImportRow, actor_id: UUID) -> RowOutcome:
        product, product_created = ProductService(session).upsert_by_sku(
            ProductUpsert(
                sku=row.sku,
                name=row.name,
                kind=row.kind,
                price_general=row.price,
                price_discounted=row.price,
                photo_url=row.photo_url,
            ),
            actor_id,
        )
        inventories = InventoryService(session, self._clock, self._policy)

        if not row.kind.tracks_stock:
            deleted = inventories.delete_for_product(product)
            return RowOutcome(
                product_created=product_created,
                product_updated=not product_created,
                inventory_deleted=deleted > 0,
            )

        result, inventory_created = inventories.upsert_for_product(
            product,
            code=row.code,
            stock=row.stock,
            minimum_threshold=row.minimum,
            actor_id=actor_id,
        )
        return RowOutcome(
            product_created=product_created,
            product_updated=not product_created,
            inventory_created=inventory_created,
            inventory_updated=not inventory_created,
            inventory_id=result.inventory.id,
            stock_critical_action=result.stock_critical.action.value,
        )

    def _record_batch(
        self,
        report: ImportReport,
        batch_id: UUID,
        row_logs: list[dict[str, Any]],
        actor_id: UUID,
    ) -> ImportReport:
        """Persist the batch log. The rows are already committed, so a failure
        here is logged and the report is returned without a batch id."""
        try:
            with transaction_scope(self._session_factory) as session:
                batch = ImportBatchModel(
                    id=batch_id,
                    source_filename=report.source_filename,
                    status=report.status.value,
                    total_rows=report.total,
                    ok_rows=report.processed,
                    error_rows=len(report.errors),
                    created_products=report.created_products,
                    updated_products=report.updated_products,
                    created_inventories=report.created_inventories,
                    updated_inventories=report.updated_inventories,
                    deleted_inventories=report.deleted_inventories,
                    completed_at=report.completed_at,
                    created_by_id=actor_id,
                )
                for entry in row_logs:
                    outcome: RowOutcome | None = entry["outcome"]
                    batch.rows.append(ImportRowModel(
                        row_number=entry["row_number"],
                        ok=entry["error"] is None,
                        error=entry["error"],
                        raw=entry["raw"],
                        inventory_id=outcome.inventory_id if outcome else None,
                        stock_critical_action=outcome.stock_critical_action if outcome else None,
                        created_by_id=actor_id,
                    ))
                session.add(batch)
        except SQLAlchemyError:
            logger.exception("import_batch_log_failed")
            return report
        return replace(report, batch_id=batch_id)
