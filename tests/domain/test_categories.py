"""Tests for product categories and CategoryMap."""

import pytest

from stock_kernel.domain.categories import (
    DEFAULT_CATEGORY_MAP,
    CategoryMap,
    ProductKind,
    SubstringRule,
)


class TestProductKind:

    def test_only_products_track_stock(self):
        assert ProductKind.PRODUCT.tracks_stock
        assert not ProductKind.SERVICE.tracks_stock
        assert not ProductKind.FREIGHT.tracks_stock


class TestCategoryMap:

    @pytest.mark.parametrize(
        "label, expected",
        [
            ("Producto", ProductKind.PRODUCT),
            ("  producto ", ProductKind.PRODUCT),
            ("SERVICIO", ProductKind.SERVICE),
            ("Flete", ProductKind.FREIGHT),
            ("Fletes express", ProductKind.FREIGHT),
            ("productos varios", ProductKind.PRODUCT),
            ("Servicios técnicos", ProductKind.SERVICE),
        ],
    )
    def test_default_map(self, label, expected):
        assert DEFAULT_CATEGORY_MAP.resolve(label) is expected

    @pytest.mark.parametrize("label", [None, "", "   ", "Insumo"])
    def test_unknown_labels(self, label):
        assert DEFAULT_CATEGORY_MAP.resolve(label) is None

    def test_synonyms_win_over_substring_rules(self):
        categories = CategoryMap.build(
            synonyms={"Despacho producto": ProductKind.FREIGHT},
            substring_rules=[SubstringRule("prod", ProductKind.PRODUCT)],
        )

        assert categories.resolve("despacho PRODUCTO") is ProductKind.FREIGHT

    def test_substring_rules_apply_in_order(self):
        categories = CategoryMap.build(
            substring_rules=[
                SubstringRule("flet", ProductKind.FREIGHT),
                SubstringRule("prod", ProductKind.PRODUCT),
            ],
        )

        assert categories.resolve("flete de productos") is ProductKind.FREIGHT

    def test_allowed_values(self):
        assert CategoryMap.allowed_values() == "Producto, Servicio, Flete"
