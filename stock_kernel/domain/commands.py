"""
Commands -- validated inputs for the transactional services.

Responsibility:
    Frozen dataclasses describing what a caller wants to change. Each one
    validates and coerces its fields in ``__post_init__`` and raises
    ValidationFailedError with field-level issues, so a malformed request
    is rejected before any session work starts.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

import re
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from stock_kernel.domain.movements import MovementKind
from stock_kernel.exceptions import ValidationFailedError

# Largest value the stock, threshold and price columns accept.
MAX_STORED_INT = 2_147_483_647

_INTEGER_TEXT = re.compile(r"-?\d+")


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation issue.

    Carries a machine-readable code, a human-readable message and the
    offending field. Does not raise; ValidationFailedError wraps a list.
    """

    code: str
    message: str
    field: str | None = None


def _coerce_uuid(value: Any, field_name: str, issues: list[ValidationError]) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        issues.append(ValidationError("INVALID_ID", f"{field_name} is not a valid id", field_name))
        return None


def _coerce_int(
    value: Any,
    field_name: str,
    issues: list[ValidationError],
    *,
    minimum: int,
    maximum: int = MAX_STORED_INT,
) -> int | None:
    if isinstance(value, bool):
        number = None
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and _INTEGER_TEXT.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        number = None

    if number is None:
        issues.append(ValidationError("NOT_AN_INTEGER", f"{field_name} must be an integer", field_name))
        return None
    if not minimum <= number <= maximum:
        issues.append(
            ValidationError(
                "OUT_OF_RANGE", f"{field_name} must be between {minimum} and {maximum}", field_name
            )
        )
        return None
    return number


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


@dataclass(frozen=True)
class MovementCommand:
    """Post one stock movement against an inventory record."""

    inventory_id: UUID
    kind: MovementKind
    quantity: int
    note: str | None = None

    def __post_init__(self) -> None:
        issues: list[ValidationError] = []
        inventory_id = _coerce_uuid(self.inventory_id, "inventory_id", issues)

        kind = self.kind
        if not isinstance(kind, MovementKind):
            try:
                kind = MovementKind(kind)
            except ValueError:
                allowed = ", ".join(k.value for k in MovementKind)
                issues.append(
                    ValidationError("INVALID_KIND", f"kind must be one of: {allowed}", "kind")
                )

        quantity = _coerce_int(self.quantity, "quantity", issues, minimum=1)

        if issues:
            raise ValidationFailedError(issues)
        object.__setattr__(self, "inventory_id", inventory_id)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "quantity", quantity)
        object.__setattr__(self, "note", _blank_to_none(self.note))


@dataclass(frozen=True)
class InventoryCreate:
    """Create the inventory record of a stock-tracked product."""

    product_id: UUID
    stock: int = 0
    minimum_threshold: int = 0
    code: str | None = None
    location: str | None = None

    def __post_init__(self) -> None:
        issues: list[ValidationError] = []
        product_id = _coerce_uuid(self.product_id, "product_id", issues)
        stock = _coerce_int(self.stock, "stock", issues, minimum=0)
        minimum = _coerce_int(self.minimum_threshold, "minimum_threshold", issues, minimum=0)
        if issues:
            raise ValidationFailedError(issues)
        object.__setattr__(self, "product_id", product_id)
        object.__setattr__(self, "stock", stock)
        object.__setattr__(self, "minimum_threshold", minimum)
        object.__setattr__(self, "code", _blank_to_none(self.code))
        object.__setattr__(self, "location", _blank_to_none(self.location))


@dataclass(frozen=True)
class InventoryUpdate:
    """
    Partial edit of an inventory record.

    None means "leave unchanged". For code and location an empty string
    clears the stored value.
    """

    stock: int | None = None
    minimum_threshold: int | None = None
    code: str | None = None
    location: str | None = None

    def __post_init__(self) -> None:
        issues: list[ValidationError] = []
        stock = self.stock
        if stock is not None:
            stock = _coerce_int(stock, "stock", issues, minimum=0)
        minimum = self.minimum_threshold
        if minimum is not None:
            minimum = _coerce_int(minimum, "minimum_threshold", issues, minimum=0)
        if issues:
            raise ValidationFailedError(issues)
        object.__setattr__(self, "stock", stock)
        object.__setattr__(self, "minimum_threshold", minimum)


@dataclass(frozen=True)
class RuleUpdate:
    """Set or change the stock-critical override of one inventory record."""

    enabled: bool | None = None
    threshold_override: int | None = None
    cooldown_minutes: int | None = None

    def __post_init__(self) -> None:
        issues: list[ValidationError] = []
        if self.enabled is not None and not isinstance(self.enabled, bool):
            issues.append(ValidationError("NOT_A_BOOLEAN", "enabled must be a boolean", "enabled"))
        threshold = self.threshold_override
        if threshold is not None:
            threshold = _coerce_int(threshold, "threshold_override", issues, minimum=0)
        cooldown = self.cooldown_minutes
        if cooldown is not None:
            cooldown = _coerce_int(cooldown, "cooldown_minutes", issues, minimum=0)
        if issues:
            raise ValidationFailedError(issues)
        object.__setattr__(self, "threshold_override", threshold)
        object.__setattr__(self, "cooldown_minutes", cooldown)
