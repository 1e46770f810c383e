"""
ORM-level immutability enforcement.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database. The listeners registered here reject changes to records that the
ledger treats as history:

    session.flush()
         |
         v
    [before_update] --> _check_*_update() --> ImmutabilityViolationError
         |
         v
    [before_delete] --> _check_*_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Entity          | When immutable          | Deletion allowed
----------------|-------------------------|------------------------------------
StockMovement   | always                  | only with its inventory record
StockAlert      | once status = RESOLVED  | only with its inventory record

updated_at / updated_by_id are audit metadata and may always change.

Usage (done by create_tables(); safe to call more than once):

    from stock_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.orm import object_session
from sqlalchemy.orm.attributes import get_history

from stock_kernel.exceptions import ImmutabilityViolationError
from stock_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})


def _changed_fields(target, field_names) -> list[str]:
    changed = []
    for name in field_names:
        if name in _AUDIT_FIELDS:
            continue
        if get_history(target, name).has_changes():
            changed.append(name)
    return changed


def _column_names(target) -> list[str]:
    return [attr.key for attr in target.__mapper__.column_attrs]


def _parent_inventory_deleted(target) -> bool:
    from stock_kernel.models.inventory import InventoryRecord

    session = object_session(target)
    if session is None:
        return False
    return any(
        isinstance(obj, InventoryRecord) and obj.id == target.inventory_id
        for obj in session.deleted
    )


def _reject(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "reason": reason,
        },
    )
    raise ImmutabilityViolationError(entity_type, str(target.id), reason)


def _check_movement_update(mapper, connection, target):
    changed = _changed_fields(target, _column_names(target))
    if changed:
        _reject(
            "StockMovement",
            target,
            "UPDATE",
            f"movements are append-only; attempted to change {', '.join(sorted(changed))}",
        )


def _check_movement_delete(mapper, connection, target):
    if not _parent_inventory_deleted(target):
        _reject(
            "StockMovement",
            target,
            "DELETE",
            "movements are only removed together with their inventory record",
        )


def _was_resolved(target) -> bool:
    from stock_kernel.domain.dtos import AlertStatus

    history = get_history(target, "status")
    previous = history.deleted or history.unchanged
    return any(
        value is not None and AlertStatus(value) is AlertStatus.RESOLVED
        for value in previous
    )


def _check_alert_update(mapper, connection, target):
    if not _was_resolved(target):
        return
    changed = _changed_fields(target, _column_names(target))
    if changed:
        _reject(
            "StockAlert",
            target,
            "UPDATE",
            f"resolved alerts are frozen; attempted to change {', '.join(sorted(changed))}",
        )


def _check_alert_delete(mapper, connection, target):
    if not _parent_inventory_deleted(target):
        _reject(
            "StockAlert",
            target,
            "DELETE",
            "alerts are only removed together with their inventory record",
        )


_LISTENERS = (
    ("StockMovement", "before_update", _check_movement_update),
    ("StockMovement", "before_delete", _check_movement_delete),
    ("StockAlert", "before_update", _check_alert_update),
    ("StockAlert", "before_delete", _check_alert_delete),
)


def _targets():
    from stock_kernel.models.stock_alert import StockAlert
    from stock_kernel.models.stock_movement import StockMovement

    return {"StockMovement": StockMovement, "StockAlert": StockAlert}


def register_immutability_listeners() -> None:
    """Register all immutability listeners (idempotent)."""
    targets = _targets()
    for name, identifier, fn in _LISTENERS:
        if not event.contains(targets[name], identifier, fn):
            event.listen(targets[name], identifier, fn)
    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners() -> None:
    """Remove all immutability listeners. TESTS ONLY."""
    targets = _targets()
    for name, identifier, fn in _LISTENERS:
        if event.contains(targets[name], identifier, fn):
            event.remove(targets[name], identifier, fn)
