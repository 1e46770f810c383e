"""
Config -> Kernel bridges.

Convert StockSettings into the plain kernel inputs the services take. They
live here because the kernel must never import stock_config.

Usage:
    settings = get_active_settings()
    policy = build_policy(settings)
    evaluator = StockCriticalEvaluator(session, clock, policy)
"""

from __future__ import annotations

from stock_config.schema import StockSettings
from stock_kernel.domain.categories import CategoryMap, SubstringRule
from stock_kernel.domain.stock_critical import StockCriticalPolicy


def build_policy(settings: StockSettings) -> StockCriticalPolicy:
    sc = settings.stock_critical
    return StockCriticalPolicy(
        default_cooldown_minutes=sc.default_cooldown_minutes,
        channel=sc.channel,
        notification_kind=sc.notification.kind,
        reference_table=sc.notification.reference_table,
        title_template=sc.notification.title,
        reminder_title_template=sc.notification.reminder_title,
        detail_template=sc.notification.detail,
    )


def build_category_map(settings: StockSettings) -> CategoryMap:
    return CategoryMap.build(
        synonyms=settings.categories.synonyms,
        substring_rules=[
            SubstringRule(contains=rule.contains, kind=rule.category)
            for rule in settings.categories.substring_rules
        ],
    )
