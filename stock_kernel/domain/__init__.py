"""
Pure domain layer.

Values, commands and decision rules with no dependency on the ORM, the
database or the wall clock.
"""

from stock_kernel.domain.categories import CategoryMap, ProductKind, SubstringRule
from stock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stock_kernel.domain.commands import (
    InventoryCreate,
    InventoryUpdate,
    MovementCommand,
    RuleUpdate,
    ValidationError,
)
from stock_kernel.domain.dtos import (
    AlertInfo,
    AlertStatus,
    InventoryDetail,
    InventoryInfo,
    InventoryMutationResult,
    MovementInfo,
    MovementResult,
    ProductInfo,
    RuleInfo,
)
from stock_kernel.domain.movements import MovementKind, apply_movement
from stock_kernel.domain.stock_critical import (
    DEFAULT_COOLDOWN_MINUTES,
    EffectiveRule,
    NoopReason,
    StockCriticalPolicy,
    TransitionAction,
    TransitionResult,
)

__all__ = [
    "AlertInfo",
    "AlertStatus",
    "CategoryMap",
    "Clock",
    "DEFAULT_COOLDOWN_MINUTES",
    "DeterministicClock",
    "EffectiveRule",
    "InventoryCreate",
    "InventoryDetail",
    "InventoryInfo",
    "InventoryMutationResult",
    "InventoryUpdate",
    "MovementCommand",
    "MovementInfo",
    "MovementKind",
    "MovementResult",
    "NoopReason",
    "ProductInfo",
    "ProductKind",
    "RuleInfo",
    "RuleUpdate",
    "StockCriticalPolicy",
    "SubstringRule",
    "SystemClock",
    "TransitionAction",
    "TransitionResult",
    "ValidationError",
    "apply_movement",
]
