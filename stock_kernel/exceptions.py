"""
Typed exception hierarchy for the stock kernel.

Every error raised by a service carries a stable machine-readable ``code``
and the HTTP status an outer transport should answer with. Callers catch
by type and read structured attributes instead of parsing messages:

    try:
        movement_service.post_movement(command, actor_id)
    except NegativeStockError as e:
        respond(e.http_status, {"code": e.code, "stock": e.current_stock})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StockKernelError (base)
    |
    +-- ValidationFailedError          400  malformed command, field issues
    |
    +-- DomainRuleError                400
    |   +-- ProductNotFoundError
    |   +-- ProductIsFreightError
    |   +-- NegativeStockError
    |   +-- ImportSourceError
    |
    +-- NotFoundError                  404
    |   +-- InventoryNotFoundError
    |   +-- AlertNotFoundError
    |
    +-- ConflictError                  409
        +-- DuplicateRecordError
        +-- ImmutabilityViolationError

The stock-critical evaluator raises none of these: business conditions are
reported in its result. Row-level import failures are data, not exceptions.

===============================================================================
ERROR CODES
===============================================================================

Code                    | Exception                  | Meaning
------------------------|----------------------------|-------------------------------
VALIDATION_FAILED       | ValidationFailedError      | Command rejected before any write
PRODUCTO_NOT_FOUND      | ProductNotFoundError       | Referenced product missing
PRODUCTO_ES_FLETE       | ProductIsFreightError      | Product category is not stock-tracked
STOCK_NEGATIVO          | NegativeStockError         | Movement would leave stock below zero
IMPORT_SOURCE_INVALID   | ImportSourceError          | Import file empty, too large or unreadable
INV_NOT_FOUND           | InventoryNotFoundError     | Inventory record missing
ALERT_NOT_FOUND         | AlertNotFoundError         | Alert missing
DUPLICATE_RECORD        | DuplicateRecordError       | Unique constraint (sku / code / product)
IMMUTABILITY_VIOLATION  | ImmutabilityViolationError | Movement or resolved alert modified
"""

from typing import Any

from stock_kernel.logging_config import get_logger

logger = get_logger("exceptions")


class StockKernelError(Exception):
    """Base exception for all stock kernel errors."""

    code: str = "STOCK_KERNEL_ERROR"
    http_status: int = 500


# Validation


class ValidationFailedError(StockKernelError):
    """A command failed validation; nothing was written."""

    code: str = "VALIDATION_FAILED"
    http_status: int = 400

    def __init__(self, errors: list | tuple):
        self.errors = tuple(errors)
        fields = ", ".join(e.field or e.code for e in self.errors)
        super().__init__(f"Validation failed: {fields}")


# Domain rules


class DomainRuleError(StockKernelError):
    """A well-formed request violates a business rule."""

    code: str = "DOMAIN_RULE_ERROR"
    http_status: int = 400


class ProductNotFoundError(DomainRuleError):
    """The product an inventory record should belong to does not exist."""

    code: str = "PRODUCTO_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class ProductIsFreightError(DomainRuleError):
    """Stock operations are not allowed on non-stock categories (freight, services)."""

    code: str = "PRODUCTO_ES_FLETE"

    def __init__(self, product_id: str, kind: str):
        self.product_id = product_id
        self.kind = kind
        super().__init__(
            f"Product {product_id} has category {kind} and does not track stock"
        )


class ImportSourceError(DomainRuleError):
    """An import file cannot be processed as a whole (empty, too large, unreadable)."""

    code: str = "IMPORT_SOURCE_INVALID"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot import {source}: {reason}")


class NegativeStockError(DomainRuleError):
    """A movement would leave the inventory record with negative stock."""

    code: str = "STOCK_NEGATIVO"

    def __init__(self, inventory_id: str, current_stock: int, resulting_stock: int):
        self.inventory_id = inventory_id
        self.current_stock = current_stock
        self.resulting_stock = resulting_stock
        super().__init__(
            f"Movement on inventory {inventory_id} would leave stock at "
            f"{resulting_stock} (current {current_stock})"
        )


# Not found


class NotFoundError(StockKernelError):
    """Base for missing-record errors."""

    code: str = "NOT_FOUND"
    http_status: int = 404


class InventoryNotFoundError(NotFoundError):
    code: str = "INV_NOT_FOUND"

    def __init__(self, inventory_id: str):
        self.inventory_id = inventory_id
        super().__init__(f"Inventory record not found: {inventory_id}")


class AlertNotFoundError(NotFoundError):
    code: str = "ALERT_NOT_FOUND"

    def __init__(self, alert_id: str):
        self.alert_id = alert_id
        super().__init__(f"Stock alert not found: {alert_id}")


# Conflicts


class ConflictError(StockKernelError):
    """Base for errors caused by the current state of stored data."""

    code: str = "CONFLICT"
    http_status: int = 409


class DuplicateRecordError(ConflictError):
    """
    A unique constraint was violated.

    Raised for a second inventory record on the same product, a repeated
    inventory code or a repeated product SKU.
    """

    code: str = "DUPLICATE_RECORD"

    def __init__(self, entity_type: str, detail: str = ""):
        self.entity_type = entity_type
        self.detail = detail
        message = f"Duplicate {entity_type}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ImmutabilityViolationError(ConflictError):
    """Attempted to modify or delete an immutable record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Transport mapping

_GENERIC_INTERNAL_MESSAGE = "Internal error"


def error_payload(exc: BaseException) -> tuple[int, dict[str, Any]]:
    """
    Map an exception to ``(http_status, body)`` for an outer transport.

    Kernel errors expose their code and message (plus field issues for
    validation failures). Anything else is logged and answered with a
    generic 500 body that carries no internal detail.
    """
    if isinstance(exc, StockKernelError):
        body: dict[str, Any] = {"code": exc.code, "message": str(exc)}
        if isinstance(exc, ValidationFailedError):
            body["errors"] = [
                {"code": e.code, "message": e.message, "field": e.field}
                for e in exc.errors
            ]
        return exc.http_status, body

    logger.error(
        "unexpected_error",
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return 500, {"code": "INTERNAL_ERROR", "message": _GENERIC_INTERNAL_MESSAGE}
