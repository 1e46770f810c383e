"""
Stock-critical decision rules -- pure functional core.

Responsibility:
    Everything the evaluator decides, without touching storage:
    resolving the effective rule, the inclusive criticality test, the
    cooldown test and the transition table. The imperative shell
    (services/stock_critical_evaluator.py) loads state, calls
    ``decide_transition`` and applies the returned action.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Transition table:

    critical | active alert | cooldown elapsed | action
    ---------|--------------|------------------|---------------
    yes      | no           | -                | CREATED
    yes      | yes          | no               | NOOP (cooldown)
    yes      | yes          | yes              | RESENT
    no       | yes          | -                | RESOLVED
    no       | no           | -                | NOOP

Invariants enforced:
    - stock == threshold is critical (inclusive comparison).
    - Cooldown elapses at exactly ``cooldown_minutes`` (>=, not >).
    - The effective rule is resolved once per evaluation.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
from uuid import UUID

DEFAULT_COOLDOWN_MINUTES = 360


class TransitionAction(str, Enum):
    NOOP = "noop"
    CREATED = "created"
    RESENT = "resent"
    RESOLVED = "resolved"


class NoopReason(str, Enum):
    INVENTORY_NOT_FOUND = "inventario_not_found"
    NOT_STOCK_TRACKED = "producto_es_flete"
    RULE_DISABLED = "rule_disabled"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class StockCriticalPolicy:
    """
    Explicit evaluator configuration.

    Built from settings by stock_config.bridges.build_policy(); tests
    construct it directly.
    """

    default_cooldown_minutes: int = DEFAULT_COOLDOWN_MINUTES
    channel: str = "system"
    notification_kind: str = "STOCK_CRITICO"
    reference_table: str = "Inventario"
    title_template: str = "Stock crítico: {name}"
    reminder_title_template: str = "Stock crítico (recordatorio): {name}"
    detail_template: str = "Stock {stock} (mínimo {threshold})."

    def __post_init__(self) -> None:
        if self.default_cooldown_minutes < 0:
            raise ValueError("default_cooldown_minutes must be >= 0")
        if not self.channel:
            raise ValueError("channel must not be empty")


@dataclass(frozen=True)
class EffectiveRule:
    """Rule override merged with the record's own minimum and the policy default."""

    threshold: int
    cooldown_minutes: int
    enabled: bool
    has_rule: bool

    @classmethod
    def resolve(
        cls,
        *,
        minimum_threshold: int | None,
        policy: StockCriticalPolicy,
        rule_enabled: bool | None = None,
        threshold_override: int | None = None,
        cooldown_minutes: int | None = None,
    ) -> "EffectiveRule":
        """
        ``rule_enabled`` is None when the record has no rule row; absence
        means enabled with no overrides.
        """
        has_rule = rule_enabled is not None
        threshold = threshold_override
        if threshold is None:
            threshold = minimum_threshold if minimum_threshold is not None else 0
        cooldown = cooldown_minutes
        if cooldown is None:
            cooldown = policy.default_cooldown_minutes
        return cls(
            threshold=int(threshold),
            cooldown_minutes=int(cooldown),
            enabled=True if rule_enabled is None else bool(rule_enabled),
            has_rule=has_rule,
        )


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one evaluation."""

    action: TransitionAction
    alert_id: UUID | None = None
    reason: NoopReason | None = None

    @classmethod
    def noop(cls, reason: NoopReason | None = None) -> "TransitionResult":
        return cls(action=TransitionAction.NOOP, reason=reason)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"action": self.action.value}
        if self.alert_id is not None:
            data["alertId"] = str(self.alert_id)
        if self.reason is not None:
            data["reason"] = self.reason.value
        return data


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps (SQLite reads) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_critical(stock: int, threshold: int) -> bool:
    return stock <= threshold


def cooldown_elapsed(
    now: datetime,
    last_notified_at: datetime | None,
    cooldown_minutes: int,
) -> bool:
    """True when no notification was recorded or ``now - last >= cooldown``."""
    last = as_utc(last_notified_at)
    if last is None:
        return True
    return as_utc(now) - last >= timedelta(minutes=cooldown_minutes)


def last_notification_time(
    rule_last_notified_at: datetime | None,
    alert_last_sent_at: datetime | None,
    alert_opened_at: datetime | None,
) -> datetime | None:
    """Rule stamp first, then the alert's last send, then its opening."""
    for candidate in (rule_last_notified_at, alert_last_sent_at, alert_opened_at):
        if candidate is not None:
            return candidate
    return None


def decide_transition(
    critical: bool,
    has_active_alert: bool,
    cooldown_has_elapsed: bool,
) -> tuple[TransitionAction, NoopReason | None]:
    if critical:
        if not has_active_alert:
            return TransitionAction.CREATED, None
        if not cooldown_has_elapsed:
            return TransitionAction.NOOP, NoopReason.COOLDOWN
        return TransitionAction.RESENT, None
    if has_active_alert:
        return TransitionAction.RESOLVED, None
    return TransitionAction.NOOP, None
