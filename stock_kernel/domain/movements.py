"""Stock movement kinds and the pure stock arithmetic applied when posting them."""

from enum import Enum


class MovementKind(str, Enum):
    ENTRY = "Entrada"
    EXIT = "Salida"
    ADJUSTMENT = "Ajuste"


def apply_movement(current_stock: int, kind: MovementKind, quantity: int) -> int:
    """
    Return the stock after applying a movement.

    Entry adds, exit subtracts, adjustment sets the absolute value. The
    result may be negative; rejecting it is the caller's job.
    """
    if kind is MovementKind.ENTRY:
        return current_stock + quantity
    if kind is MovementKind.EXIT:
        return current_stock - quantity
    return quantity
