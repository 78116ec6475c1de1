"""Option Model: tests for Feature/Value invariants and default validation."""

import pytest

from variant_cart.domain.options import Feature, FeatureType, Product, Value


def test_unknown_feature_type_fails():
    with pytest.raises(ValueError):
        Feature(id=1, name="color", type="icon_text")


def test_feature_type_string_is_coerced():
    feature = Feature(id=1, name="color", type="multi_select")
    assert feature.type is FeatureType.MULTI_SELECT
    assert feature.accepts_many


def test_duplicate_value_keys_fail():
    with pytest.raises(ValueError, match="Duplicate value keys"):
        Feature(id=1, name="color", values=(Value(id=1, key="red"), Value(id=2, key="red")))


def test_values_and_features_are_ordered_by_index():
    feature = Feature(
        id=1,
        name="size",
        values=(Value(id=1, key="XL", index=2), Value(id=2, key="M", index=1)),
    )
    assert [v.key for v in feature.values] == ["M", "XL"]

    product = Product(
        id=1,
        name="T-shirt",
        base_price=1000,
        features=(Feature(id=2, name="b", index=1), Feature(id=1, name="a", index=0)),
    )
    assert [f.name for f in product.features] == ["a", "b"]
    assert product.feature(2).name == "b"
    assert product.feature(99) is None


def test_value_defaults():
    value = Value(id=1, key="red")
    assert value.additional_price == 0
    assert value.stock is None
    assert not value.decreases_stock


def test_select_default_must_reference_existing_value():
    Feature(id=1, name="color", values=(Value(id=1, key="red"),), default_value="red").validate_default()
    with pytest.raises(ValueError):
        Feature(id=1, name="color", values=(Value(id=1, key="red"),), default_value="blue").validate_default()


def test_numeric_default_respects_bounds():
    Feature(id=1, name="w", type="numeric", min=1, max=10, default_value="5").validate_default()
    with pytest.raises(ValueError):
        Feature(id=1, name="w", type="numeric", min=1, max=10, default_value="11").validate_default()
    with pytest.raises(ValueError):
        Feature(id=1, name="w", type="numeric", default_value="abc").validate_default()


def test_text_default_respects_size():
    with pytest.raises(ValueError):
        Feature(id=1, name="t", type="text", max_size=3, default_value="long").validate_default()


def test_boolean_default():
    Feature(id=1, name="gift", type="boolean", default_value="true").validate_default()
    with pytest.raises(ValueError):
        Feature(id=1, name="gift", type="boolean", default_value="yes").validate_default()


def test_missing_default_is_valid():
    Feature(id=1, name="color").validate_default()
