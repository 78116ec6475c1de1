# variant_cart/domain/overrides.py
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from variant_cart.domain.errors import AmbiguousOverride
from variant_cart.domain.signature import CombinationSignature


class OverrideKind(str, Enum):
    GROUP = "group"  # kombinacja wielu feature (group_product)
    FEATURE = "feature"  # pojedynczy feature (group_feature)


@dataclass(frozen=True)
class Override:
    """
    Cena/stock dla konkretnej kombinacji.
    additional_price zastepuje (nie sumuje sie z) delty pojedynczych Value.
    """

    signature: CombinationSignature
    kind: OverrideKind = OverrideKind.GROUP
    additional_price: int = 0
    stock: Optional[int] = None
    decreases_stock: bool = True
    continue_selling: bool = False

    def __post_init__(self):
        object.__setattr__(self, "kind", OverrideKind(self.kind))
        if not self.signature.tokens:
            raise ValueError("Override signature must contain at least one value")
        if self.kind == OverrideKind.FEATURE and len(self.signature.feature_ids) != 1:
            raise ValueError("Single-feature override must span exactly one feature")

    def matches(self, signature: CombinationSignature) -> bool:
        return self.signature == signature


def pick_override(product_id: int, signature: CombinationSignature, candidates: Iterable[Override]) -> Optional[Override]:
    """
    Wybor sposrod rekordow pasujacych do tej samej sygnatury:
    group wygrywa z feature, dwa rekordy tego samego rodzaju -> AmbiguousOverride.
    """
    matching = [o for o in candidates if o.matches(signature)]
    for kind in (OverrideKind.GROUP, OverrideKind.FEATURE):
        of_kind = [o for o in matching if o.kind == kind]
        if len(of_kind) > 1:
            raise AmbiguousOverride(product_id, str(signature), len(of_kind))
        if of_kind:
            return of_kind[0]
    return None
