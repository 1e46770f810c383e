"""
DTOs -- Immutable read models returned by services and selectors.

Responsibility:
    Frozen dataclasses that cross the service boundary. Callers never
    receive ORM instances, so nothing outside the kernel can mutate a
    session-bound object by accident. ``to_dict()`` renders the camel-case
    shape an outer JSON transport returns.

Architecture position:
    Kernel > Domain -- pure, zero I/O. ORM models convert themselves with
    ``to_dto()``; this module never imports models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from stock_kernel.domain.categories import ProductKind
from stock_kernel.domain.movements import MovementKind
from stock_kernel.domain.stock_critical import TransitionResult


class AlertStatus(str, Enum):
    OPEN = "OPEN"
    ACK = "ACK"
    RESOLVED = "RESOLVED"

    @classmethod
    def parse(cls, value: "str | AlertStatus | None", default: "AlertStatus") -> "AlertStatus":
        """Lenient parse for query filters: unknown values fall back to ``default``."""
        if isinstance(value, cls):
            return value
        if value is None:
            return default
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return default


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class ProductInfo:
    id: UUID
    name: str
    kind: ProductKind
    sku: str | None = None
    unit_of_measure: str = "unidad"
    price_general: int = 0
    price_discounted: int = 0
    photo_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "nombre": self.name,
            "tipo": self.kind.value,
            "sku": self.sku,
            "unidadMedida": self.unit_of_measure,
            "precioGeneral": self.price_general,
            "precioConDescto": self.price_discounted,
            "fotoUrl": self.photo_url,
        }


@dataclass(frozen=True)
class RuleInfo:
    inventory_id: UUID
    enabled: bool
    threshold_override: int | None
    cooldown_minutes: int | None
    last_notified_at: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "thresholdOverride": self.threshold_override,
            "cooldownMinutes": self.cooldown_minutes,
            "lastNotifiedAt": _iso(self.last_notified_at),
        }


@dataclass(frozen=True)
class AlertInfo:
    id: UUID
    inventory_id: UUID
    status: AlertStatus
    is_active: bool
    threshold: int
    stock_at_alert: int
    opened_at: datetime
    last_sent_at: datetime | None = None
    acknowledged_at: datetime | None = None
    resolved_at: datetime | None = None
    channel: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)
    inventory_code: str | None = None
    product_name: str | None = None
    product_sku: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "inventarioId": str(self.inventory_id),
            "status": self.status.value,
            "isActive": self.is_active,
            "threshold": self.threshold,
            "stockAtAlert": self.stock_at_alert,
            "openedAt": _iso(self.opened_at),
            "lastSentAt": _iso(self.last_sent_at),
            "ackAt": _iso(self.acknowledged_at),
            "resolvedAt": _iso(self.resolved_at),
            "channel": self.channel,
            "meta": dict(self.meta),
            "inventario": {
                "codigo": self.inventory_code,
                "producto": {"nombre": self.product_name, "sku": self.product_sku},
            },
        }


@dataclass(frozen=True)
class MovementInfo:
    id: UUID
    inventory_id: UUID
    kind: MovementKind
    quantity: int
    note: str | None
    created_at: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "inventarioId": str(self.inventory_id),
            "tipo": self.kind.value,
            "cantidad": self.quantity,
            "nota": self.note,
            "createdAt": _iso(self.created_at),
        }


@dataclass(frozen=True)
class InventoryInfo:
    id: UUID
    product_id: UUID
    stock: int
    minimum_threshold: int
    code: str | None = None
    location: str | None = None
    product: ProductInfo | None = None
    active_alert: AlertInfo | None = None
    rule: RuleInfo | None = None

    @property
    def is_critical(self) -> bool:
        """Critical by the record's own minimum (rule overrides not applied)."""
        return self.stock <= self.minimum_threshold

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": str(self.id),
            "productoId": str(self.product_id),
            "codigo": self.code,
            "stock": self.stock,
            "minimo": self.minimum_threshold,
            "ubicacion": self.location,
        }
        if self.product is not None:
            data["producto"] = self.product.to_dict()
        if self.active_alert is not None:
            data["activeAlert"] = self.active_alert.to_dict()
        if self.rule is not None:
            data["stockCriticalRule"] = self.rule.to_dict()
        return data


@dataclass(frozen=True)
class InventoryDetail:
    """One inventory record with its movement history and recent alerts."""

    inventory: InventoryInfo
    movements: tuple[MovementInfo, ...] = ()
    alerts: tuple[AlertInfo, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = self.inventory.to_dict()
        data["movimientos"] = [m.to_dict() for m in self.movements]
        data["stockAlerts"] = [a.to_dict() for a in self.alerts]
        return data


@dataclass(frozen=True)
class InventoryMutationResult:
    """Result of a direct create or edit, with the evaluation it triggered."""

    inventory: InventoryInfo
    stock_critical: TransitionResult

    def to_dict(self) -> dict[str, Any]:
        return {"item": self.inventory.to_dict(), "stockCritical": self.stock_critical.to_dict()}


@dataclass(frozen=True)
class MovementResult:
    """Result of a posted movement, with the evaluation it triggered."""

    movement: MovementInfo
    inventory: InventoryInfo
    stock_critical: TransitionResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "movimiento": self.movement.to_dict(),
            "inventario": self.inventory.to_dict(),
            "stockCritical": self.stock_critical.to_dict(),
        }
