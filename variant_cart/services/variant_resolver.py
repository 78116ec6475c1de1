# variant_cart/services/variant_resolver.py
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from variant_cart.domain.errors import InvalidSelection, MissingRequiredFeature
from variant_cart.domain.options import Product, Value
from variant_cart.domain.signature import CombinationSignature, Selection, selected_keys
from variant_cart.services.override_store import OverrideStore
from variant_cart.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Resolution:
    unit_price: int
    available_stock: Optional[int]  # None = bez limitu
    decreases_stock: bool
    continue_selling: bool
    signature: CombinationSignature
    override_applied: bool = False
    price_clamped: bool = False

    @property
    def unlimited(self) -> bool:
        return self.available_stock is None


class VariantResolver:
    """
    Cena i stock dla konkretnej kombinacji opcji produktu.
    Czysty odczyt: produkt + override store, bez zapisu.
    """

    def __init__(self, override_store: OverrideStore):
        self.override_store = override_store

    def resolve(self, product: Product, selection: Selection) -> Resolution:
        chosen = self._validate(product, selection)
        signature = CombinationSignature.from_selection(chosen)

        override = self.override_store.lookup(product.id, signature)
        if override is not None:
            price = product.base_price + override.additional_price
            stock = override.stock
            decreases = override.decreases_stock
            continue_selling = override.continue_selling
        else:
            values = self._selected_values(product, chosen)
            price = product.base_price + sum(v.additional_price for v in values)
            limiting = [v for v in values if v.decreases_stock]
            stocks = [v.stock for v in limiting if v.stock is not None]
            stock = min(stocks) if stocks else None
            decreases = bool(limiting)
            continue_selling = bool(limiting) and all(v.continue_selling for v in limiting)

        clamped = False
        if price < 0:
            # blad danych (zle delty/override), nie odrzucamy requestu
            logger.warning(
                f"Negative price {price} for product {product.id} combination {signature}, clamped to 0"
            )
            price = 0
            clamped = True

        return Resolution(
            unit_price=price,
            available_stock=stock,
            decreases_stock=decreases,
            continue_selling=continue_selling,
            signature=signature,
            override_applied=override is not None,
            price_clamped=clamped,
        )

    def _validate(self, product: Product, selection: Selection) -> Dict[int, FrozenSet[str]]:
        chosen: Dict[int, FrozenSet[str]] = {}

        for feature_id, raw in (selection or {}).items():
            feature = product.feature(feature_id)
            if feature is None:
                raise InvalidSelection(
                    f"Feature {feature_id!r} does not belong to product {product.id}",
                    feature_id=feature_id,
                )

            if raw is None:
                continue
            try:
                keys = selected_keys(raw)
            except TypeError:
                raise InvalidSelection(
                    f"Selection for feature '{feature.name}' must be a value key or a list of keys",
                    feature_id=feature_id,
                ) from None

            if len(keys) > 1 and not feature.accepts_many:
                raise InvalidSelection(
                    f"Feature '{feature.name}' accepts a single value, got {sorted(keys)}",
                    feature_id=feature_id,
                )
            for key in keys:
                if feature.value(key) is None:
                    raise InvalidSelection(
                        f"Value '{key}' is not defined for feature '{feature.name}'",
                        feature_id=feature_id,
                        value_key=key,
                    )
            if keys:
                chosen[feature_id] = keys

        for feature in product.features:
            if feature.required and feature.id not in chosen:
                raise MissingRequiredFeature(feature.id, feature.name)

        return chosen

    @staticmethod
    def _selected_values(product: Product, chosen: Dict[int, FrozenSet[str]]) -> List[Value]:
        values = []
        for feature_id, keys in chosen.items():
            feature = product.feature(feature_id)
            values.extend(feature.value(k) for k in sorted(keys))
        return values
