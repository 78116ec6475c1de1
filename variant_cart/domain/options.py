# variant_cart/domain/options.py
"""
Model opcji produktu: Feature (atrybut, np. kolor) i Value (wartosc, np. red).
Ceny to inty w najmniejszej jednostce waluty, stock=None oznacza brak limitu.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class FeatureType(str, Enum):
    TEXT = "text"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"
    NUMERIC = "numeric"
    FILE = "file"
    BOOLEAN = "boolean"


SELECT_TYPES = (FeatureType.SINGLE_SELECT, FeatureType.MULTI_SELECT)


@dataclass(frozen=True)
class Value:
    id: int
    key: str
    text: str = ""
    additional_price: int = 0
    stock: Optional[int] = None
    decreases_stock: bool = False
    continue_selling: bool = False
    index: int = 0


@dataclass(frozen=True)
class Feature:
    id: int
    name: str
    type: FeatureType = FeatureType.SINGLE_SELECT
    required: bool = False
    index: int = 0
    values: Tuple[Value, ...] = ()
    default_value: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    min_size: Optional[int] = None
    max_size: Optional[int] = None
    multiple: bool = False

    def __post_init__(self):
        # nieznany typ -> ValueError z Enum
        object.__setattr__(self, "type", FeatureType(self.type))
        object.__setattr__(
            self, "values", tuple(sorted(self.values, key=lambda v: v.index))
        )

        keys = [v.key for v in self.values]
        duplicates = {k for k in keys if keys.count(k) > 1}
        if duplicates:
            raise ValueError(
                f"Duplicate value keys {sorted(duplicates)} in feature '{self.name}'"
            )

    @property
    def accepts_many(self) -> bool:
        return self.type == FeatureType.MULTI_SELECT or self.multiple

    def value(self, key: str) -> Optional[Value]:
        for v in self.values:
            if v.key == key:
                return v
        return None

    def validate_default(self) -> None:
        """Sprawdza default_value wzgledem typu i ograniczen feature."""
        default = self.default_value
        if default is None:
            return

        if self.type in SELECT_TYPES:
            if self.value(default) is None:
                raise ValueError(
                    f"Default '{default}' of feature '{self.name}' is not one of its values"
                )
            return

        if self.type == FeatureType.NUMERIC:
            try:
                number = float(default)
            except ValueError:
                raise ValueError(
                    f"Default '{default}' of feature '{self.name}' is not a number"
                ) from None
            if self.min is not None and number < self.min:
                raise ValueError(f"Default of feature '{self.name}' is below {self.min}")
            if self.max is not None and number > self.max:
                raise ValueError(f"Default of feature '{self.name}' is above {self.max}")
            return

        if self.type == FeatureType.BOOLEAN:
            if default.lower() not in ("true", "false"):
                raise ValueError(
                    f"Default '{default}' of feature '{self.name}' is not a boolean"
                )
            return

        if self.type == FeatureType.TEXT:
            if self.min_size is not None and len(default) < self.min_size:
                raise ValueError(f"Default of feature '{self.name}' is too short")
            if self.max_size is not None and len(default) > self.max_size:
                raise ValueError(f"Default of feature '{self.name}' is too long")


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    base_price: int
    currency: str = "USD"
    features: Tuple[Feature, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(
            self, "features", tuple(sorted(self.features, key=lambda f: f.index))
        )

    def feature(self, feature_id: int) -> Optional[Feature]:
        for f in self.features:
            if f.id == feature_id:
                return f
        return None
