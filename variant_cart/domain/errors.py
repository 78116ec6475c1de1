# variant_cart/domain/errors.py
"""
Bledy domeny koszyka/wariantow.

- bledy requestu (InvalidSelection, MissingRequiredFeature, InvalidQuantity)
  odrzucaja pojedyncza operacje, nic w koszyku sie nie zmienia
- AmbiguousOverride to naruszenie integralnosci danych, nie wybieramy "na slepo"
- ProductUnavailable niesie czesciowy wynik agregacji
- StockClamped to nie wyjatek tylko sygnal zwracany razem z wynikiem
"""
from dataclasses import dataclass, field
from typing import Any


class CartCoreError(Exception):
    code = "CART_ERROR"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, **self.context}


class InvalidSelection(CartCoreError, ValueError):
    code = "INVALID_SELECTION"

    def __init__(self, message: str, feature_id=None, value_key=None):
        super().__init__(message, feature_id=feature_id, value_key=value_key)
        self.feature_id = feature_id
        self.value_key = value_key


class MissingRequiredFeature(CartCoreError, ValueError):
    code = "MISSING_REQUIRED_FEATURE"

    def __init__(self, feature_id: int, feature_name: str):
        super().__init__(
            f"Feature '{feature_name}' ({feature_id}) is required",
            feature_id=feature_id,
            feature_name=feature_name,
        )
        self.feature_id = feature_id
        self.feature_name = feature_name


class InvalidQuantity(CartCoreError, ValueError):
    code = "INVALID_QUANTITY"

    def __init__(self, value: int, field_name: str = "value"):
        super().__init__(
            f"Field '{field_name}' must be a non-negative integer, got {value!r}",
            field=field_name,
            value=value,
        )
        self.value = value


class AmbiguousOverride(CartCoreError):
    code = "AMBIGUOUS_OVERRIDE"

    def __init__(self, product_id: int, signature: str, count: int):
        super().__init__(
            f"{count} overrides match combination {signature} of product {product_id}",
            product_id=product_id,
            signature=signature,
            count=count,
        )


class ProductUnavailable(CartCoreError, LookupError):
    code = "PRODUCT_UNAVAILABLE"

    def __init__(self, message: str, product_id=None, unresolved_line_ids=None, partial=None):
        super().__init__(
            message,
            product_id=product_id,
            unresolved_line_ids=list(unresolved_line_ids or []),
        )
        self.product_id = product_id
        self.unresolved_line_ids = list(unresolved_line_ids or [])
        # CartTotal policzony dla linii ktore dalo sie wycenic
        self.partial = partial


@dataclass(frozen=True)
class StockClamped:
    product_id: int
    signature: str
    requested: int
    allowed: int
    code: str = field(default="STOCK_CLAMPED", init=False)

    @property
    def message(self) -> str:
        return (
            f"Requested quantity {self.requested} exceeds available stock, "
            f"limited to {self.allowed}"
        )

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "product_id": self.product_id,
            "signature": self.signature,
            "requested": self.requested,
            "allowed": self.allowed,
        }


class CartNotFound(CartCoreError, LookupError):
    code = "CART_NOT_FOUND"

    def __init__(self, cart_id: int, line_id=None):
        message = f"Cart {cart_id} not found" if line_id is None else f"Line {line_id} not found in cart {cart_id}"
        super().__init__(message, cart_id=cart_id, line_id=line_id)


class ConcurrencyConflict(CartCoreError, RuntimeError):
    code = "CONCURRENCY_CONFLICT"
