# variant_cart/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Dict, List, Optional, Union

from variant_cart.domain.options import Feature, FeatureType, Product, Value
from variant_cart.domain.overrides import Override, OverrideKind
from variant_cart.domain.quantity import CartMode
from variant_cart.domain.signature import CombinationSignature


# ---------- product-service payloads ----------

class ValuePayload(BaseModel):
    id: int
    key: str
    text: str = ""
    additional_price: int = 0
    stock: Optional[int] = None
    decreases_stock: bool = False
    continue_selling: bool = False
    index: int = 0

    def to_domain(self) -> Value:
        return Value(**self.model_dump())


class FeaturePayload(BaseModel):
    id: int
    name: str
    type: FeatureType
    required: bool = False
    index: int = 0
    values: List[ValuePayload] = []
    default_value: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    min_size: Optional[int] = None
    max_size: Optional[int] = None
    multiple: bool = False

    def to_domain(self) -> Feature:
        data = self.model_dump(exclude={"values"})
        feature = Feature(values=tuple(v.to_domain() for v in self.values), **data)
        feature.validate_default()
        return feature


class ProductPayload(BaseModel):
    id: int
    name: str
    base_price: int
    currency: str = "USD"
    features: List[FeaturePayload] = []

    def to_domain(self) -> Product:
        return Product(
            id=self.id,
            name=self.name,
            base_price=self.base_price,
            currency=self.currency,
            features=tuple(f.to_domain() for f in self.features),
        )


class OverridePayload(BaseModel):
    kind: OverrideKind = OverrideKind.GROUP
    bind: List[List[Union[int, str]]] = Field(..., min_length=1, description="Pary [feature_id, value_key]")
    additional_price: int = 0
    stock: Optional[int] = None
    decreases_stock: bool = True
    continue_selling: bool = False

    def to_domain(self) -> Override:
        return Override(
            signature=CombinationSignature.from_pairs(self.bind),
            kind=self.kind,
            additional_price=self.additional_price,
            stock=self.stock,
            decreases_stock=self.decreases_stock,
            continue_selling=self.continue_selling,
        )


# ---------- cart API ----------

class CreateCartIn(BaseModel):
    """Schema dla tworzenia koszyka, bez user_id = koszyk anonimowy."""

    user_id: Optional[int] = Field(None, gt=0)


class CartMutationIn(BaseModel):
    """Schema dla zmiany ilosci linii koszyka."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., gt=0, alias="productId")
    bind: Dict[int, Union[str, List[str]]] = Field(default_factory=dict)
    mode: CartMode
    # walidacja ujemnych wartosci w domenie (InvalidQuantity z nazwa pola)
    value: int = 1
    ignore_stock: bool = Field(False, alias="ignoreStock")


class MergeCartsIn(BaseModel):
    anonymous_cart_id: int = Field(..., gt=0)
    user_id: int = Field(..., gt=0)


class CartLineOut(BaseModel):
    line_id: int
    product_id: int
    bind: List[List[Union[int, str]]]
    quantity: int
    unit_price: int
    line_total: int
    available_stock: Optional[int] = None


class CartOut(BaseModel):
    """Schema dla koszyka (response), ceny w najmniejszej jednostce waluty."""

    cart_id: int
    user_id: Optional[int] = None
    items: List[CartLineOut]
    total: int
    unresolved_line_ids: List[int] = []
    expires_at: Optional[datetime] = None


class StockClampedOut(BaseModel):
    code: str
    message: str
    product_id: int
    signature: str
    requested: int
    allowed: int


class MutationOut(BaseModel):
    action: str
    line_id: Optional[int] = None
    quantity: int
    unit_price: int
    line_total: int
    stock_clamped: Optional[StockClampedOut] = None
    cart: CartOut
