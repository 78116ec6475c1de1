"""Variant Resolver: tests for price/stock resolution of one combination.

Tests cover:
    - fallback: base price + value deltas, min stock of stock-decreasing values
    - override: replaces value deltas and stock
    - order independence of the submitted selection
    - group override wins over single-feature override
    - InvalidSelection / MissingRequiredFeature name the offending feature/value
    - negative price clamped to 0 with a warning
"""

import logging

import pytest

from variant_cart.domain.errors import AmbiguousOverride, InvalidSelection, MissingRequiredFeature
from variant_cart.domain.options import Feature, Product, Value
from variant_cart.domain.overrides import Override, OverrideKind
from variant_cart.domain.signature import CombinationSignature
from variant_cart.services.override_store import InMemoryOverrideStore
from variant_cart.services.variant_resolver import VariantResolver

COLOR, SIZE, PRINT = 1, 2, 3


def make_product(base_price=1000):
    return Product(
        id=7,
        name="T-shirt",
        base_price=base_price,
        features=(
            Feature(
                id=COLOR,
                name="color",
                required=True,
                values=(Value(id=1, key="red"), Value(id=2, key="blue", stock=10, decreases_stock=True)),
            ),
            Feature(
                id=SIZE,
                name="size",
                required=True,
                index=1,
                values=(
                    Value(id=3, key="M"),
                    Value(id=4, key="XL", additional_price=200, stock=3, decreases_stock=True),
                    Value(id=5, key="XXL", additional_price=300, stock=50, decreases_stock=False),
                ),
            ),
            Feature(
                id=PRINT,
                name="print",
                type="multi_select",
                index=2,
                values=(Value(id=6, key="front", additional_price=150), Value(id=7, key="back", additional_price=100)),
            ),
        ),
    )


@pytest.fixture
def store():
    return InMemoryOverrideStore()


@pytest.fixture
def resolver(store):
    return VariantResolver(store)


def sig(selection):
    return CombinationSignature.from_selection(selection)


# ─── fallback ────────────────────────────────────────────────────

def test_fallback_sums_value_deltas_and_uses_value_stock(resolver):
    res = resolver.resolve(make_product(), {COLOR: "red", SIZE: "XL"})
    assert res.unit_price == 1200
    assert res.available_stock == 3
    assert res.decreases_stock
    assert not res.override_applied


def test_fallback_takes_minimum_stock_of_decreasing_values(resolver):
    res = resolver.resolve(make_product(), {COLOR: "blue", SIZE: "XL"})
    assert res.available_stock == 3


def test_fallback_unlimited_when_no_value_declares_stock(resolver):
    res = resolver.resolve(make_product(), {COLOR: "red", SIZE: "M"})
    assert res.unit_price == 1000
    assert res.unlimited
    assert not res.decreases_stock
    assert not res.continue_selling


def test_stock_of_non_decreasing_value_is_ignored(resolver):
    res = resolver.resolve(make_product(), {COLOR: "red", SIZE: "XXL"})
    assert res.unit_price == 1300
    assert res.available_stock is None


def test_multi_select_adds_every_selected_delta(resolver):
    res = resolver.resolve(make_product(), {COLOR: "red", SIZE: "M", PRINT: ["front", "back"]})
    assert res.unit_price == 1250


def test_empty_optional_multi_select_is_not_selected(resolver):
    res = resolver.resolve(make_product(), {COLOR: "red", SIZE: "M", PRINT: []})
    assert res.signature == sig({COLOR: "red", SIZE: "M"})


# ─── override ────────────────────────────────────────────────────

def test_override_replaces_value_deltas_and_stock(resolver, store):
    store.upsert(7, Override(signature=sig({COLOR: "red", SIZE: "XL"}), additional_price=-100, stock=1))

    res = resolver.resolve(make_product(), {COLOR: "red", SIZE: "XL"})

    assert res.unit_price == 900
    assert res.available_stock == 1
    assert res.override_applied


def test_override_flags_are_taken_from_override(resolver, store):
    store.upsert(
        7,
        Override(
            signature=sig({COLOR: "red", SIZE: "M"}),
            stock=2,
            decreases_stock=False,
            continue_selling=True,
        ),
    )
    res = resolver.resolve(make_product(), {COLOR: "red", SIZE: "M"})
    assert res.available_stock == 2
    assert not res.decreases_stock
    assert res.continue_selling


def test_override_without_stock_is_unlimited(resolver, store):
    store.upsert(7, Override(signature=sig({COLOR: "red", SIZE: "XL"}), additional_price=50))
    res = resolver.resolve(make_product(), {COLOR: "red", SIZE: "XL"})
    assert res.unit_price == 1050
    assert res.unlimited


def test_override_for_subset_does_not_match_larger_selection(resolver, store):
    store.upsert(7, Override(signature=sig({COLOR: "red", SIZE: "XL"}), additional_price=-100, stock=1))

    res = resolver.resolve(make_product(), {COLOR: "red", SIZE: "XL", PRINT: "front"})

    assert not res.override_applied
    assert res.unit_price == 1350


def test_selection_order_does_not_change_result(resolver, store):
    store.upsert(7, Override(signature=sig({COLOR: "blue", SIZE: "XL", PRINT: ["front", "back"]}), additional_price=5))
    product = make_product()

    a = resolver.resolve(product, {COLOR: "blue", SIZE: "XL", PRINT: ["front", "back"]})
    b = resolver.resolve(product, {PRINT: ["back", "front"], SIZE: "XL", COLOR: "blue"})

    assert a == b
    assert a.override_applied


def test_group_override_wins_over_single_feature_override(store):
    product = Product(
        id=8,
        name="Cap",
        base_price=500,
        features=(Feature(id=SIZE, name="size", required=True, values=(Value(id=1, key="L"),)),),
    )
    signature = sig({SIZE: "L"})
    store.upsert(8, Override(signature=signature, kind=OverrideKind.FEATURE, additional_price=10, stock=9))
    store.upsert(8, Override(signature=signature, kind=OverrideKind.GROUP, additional_price=20, stock=4))

    res = VariantResolver(store).resolve(product, {SIZE: "L"})

    assert res.unit_price == 520
    assert res.available_stock == 4


def test_two_group_overrides_for_same_combination_are_ambiguous(resolver, store):
    signature = sig({COLOR: "red", SIZE: "M"})
    store.replace_product(
        7,
        [Override(signature=signature, additional_price=1), Override(signature=signature, additional_price=2)],
    )
    with pytest.raises(AmbiguousOverride):
        resolver.resolve(make_product(), {COLOR: "red", SIZE: "M"})


def test_negative_price_is_clamped_and_logged(resolver, store, caplog):
    store.upsert(7, Override(signature=sig({COLOR: "red", SIZE: "M"}), additional_price=-5000))

    with caplog.at_level(logging.WARNING):
        res = resolver.resolve(make_product(), {COLOR: "red", SIZE: "M"})

    assert res.unit_price == 0
    assert res.price_clamped
    assert "clamped to 0" in caplog.text


# ─── validation ──────────────────────────────────────────────────

def test_unknown_value_key_fails_naming_feature_and_value(resolver):
    with pytest.raises(InvalidSelection) as exc:
        resolver.resolve(make_product(), {COLOR: "green", SIZE: "M"})
    assert exc.value.feature_id == COLOR
    assert exc.value.value_key == "green"
    assert "green" in str(exc.value)


def test_unknown_feature_fails(resolver):
    with pytest.raises(InvalidSelection) as exc:
        resolver.resolve(make_product(), {COLOR: "red", SIZE: "M", 99: "x"})
    assert exc.value.feature_id == 99


def test_several_values_for_single_select_fail(resolver):
    with pytest.raises(InvalidSelection):
        resolver.resolve(make_product(), {COLOR: ["red", "blue"], SIZE: "M"})


def test_missing_required_feature_fails(resolver):
    with pytest.raises(MissingRequiredFeature) as exc:
        resolver.resolve(make_product(), {COLOR: "red"})
    assert exc.value.feature_id == SIZE
    assert exc.value.to_dict()["feature_name"] == "size"


def test_non_string_selection_fails(resolver):
    with pytest.raises(InvalidSelection):
        resolver.resolve(make_product(), {COLOR: 5, SIZE: "M"})
