"""
Product categories and their normalisation.

Responsibility:
    Defines the canonical product categories, which of them track stock,
    and CategoryMap, the lookup that turns free-text category labels (from
    spreadsheets or API input) into a canonical category.

Architecture position:
    Kernel > Domain -- pure, zero I/O. The synonym table and substring
    rules are built from configuration by stock_config.bridges and handed
    in; nothing here reads configuration.

Lookup order (first hit wins):
    1. exact canonical value ("Producto")
    2. trimmed, case-insensitive synonym table ("productos", "flete ")
    3. substring rules, in configured order ("Fletes express" -> Flete)
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum


class ProductKind(str, Enum):
    """Canonical product categories."""

    PRODUCT = "Producto"
    SERVICE = "Servicio"
    FREIGHT = "Flete"

    @property
    def tracks_stock(self) -> bool:
        """Only physical products carry inventory; services and freight never do."""
        return self is ProductKind.PRODUCT


@dataclass(frozen=True)
class SubstringRule:
    contains: str
    kind: ProductKind


@dataclass(frozen=True)
class CategoryMap:
    """
    Synonym lookup for product categories.

    Contract:
        ``resolve(label)`` returns a ProductKind or None. It never raises.

    Guarantees:
        Synonym keys and substring needles are stored lower-cased and
        trimmed, so lookups are case- and whitespace-insensitive.
    """

    synonyms: Mapping[str, ProductKind] = field(default_factory=dict)
    substring_rules: tuple[SubstringRule, ...] = ()

    @classmethod
    def build(
        cls,
        synonyms: Mapping[str, ProductKind] | None = None,
        substring_rules: Iterable[SubstringRule] = (),
    ) -> "CategoryMap":
        table = {kind.value.lower(): kind for kind in ProductKind}
        for label, kind in (synonyms or {}).items():
            table[label.strip().lower()] = kind
        rules = tuple(
            SubstringRule(contains=r.contains.strip().lower(), kind=r.kind)
            for r in substring_rules
        )
        return cls(synonyms=table, substring_rules=rules)

    def resolve(self, label: str | None) -> ProductKind | None:
        if label is None:
            return None
        raw = str(label).strip()
        if not raw:
            return None

        for kind in ProductKind:
            if raw == kind.value:
                return kind

        key = raw.lower()
        if key in self.synonyms:
            return self.synonyms[key]

        for rule in self.substring_rules:
            if rule.contains and rule.contains in key:
                return rule.kind
        return None

    @staticmethod
    def allowed_values() -> str:
        return ", ".join(kind.value for kind in ProductKind)


DEFAULT_CATEGORY_MAP = CategoryMap.build(
    substring_rules=(
        SubstringRule("flet", ProductKind.FREIGHT),
        SubstringRule("prod", ProductKind.PRODUCT),
        SubstringRule("serv", ProductKind.SERVICE),
    ),
)
