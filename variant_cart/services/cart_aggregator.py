# variant_cart/services/cart_aggregator.py
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from variant_cart.domain.errors import (
    AmbiguousOverride,
    InvalidSelection,
    MissingRequiredFeature,
    ProductUnavailable,
)
from variant_cart.domain.signature import CombinationSignature
from variant_cart.repos.cart_repo import CartRepo
from variant_cart.services.variant_resolver import VariantResolver
from variant_cart.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineTotal:
    line_id: int
    product_id: int
    signature: CombinationSignature
    quantity: int
    unit_price: int
    line_total: int
    available_stock: Optional[int]


@dataclass(frozen=True)
class CartTotal:
    cart_id: int
    subtotal: int
    lines: Tuple[LineTotal, ...]
    unresolved_line_ids: Tuple[int, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.unresolved_line_ids


class CartAggregator:
    """
    Suma koszyka. Cena kazdej linii liczona od nowa przy kazdym wywolaniu,
    zmiany cen/overridow po stronie admina widac od razu.
    """

    def __init__(self, db: Session, catalog, resolver: VariantResolver):
        self.repo = CartRepo(db)
        self.catalog = catalog
        self.resolver = resolver

    def summarize(self, cart_id: int) -> CartTotal:
        lines = []
        unresolved = []
        products = {}

        for item in self.repo.get_cart_items(cart_id):
            if item.product_id not in products:
                products[item.product_id] = self.catalog.get_product(item.product_id)
            product = products[item.product_id]

            if product is None:
                unresolved.append(item.id)
                continue
            try:
                resolution = self.resolver.resolve(product, item.signature.to_selection())
            except (InvalidSelection, MissingRequiredFeature, AmbiguousOverride) as e:
                # opcja usunieta/zmieniona w katalogu po dodaniu do koszyka albo zdublowany override,
                # jedna zla linia nie blokuje odczytu reszty koszyka
                logger.warning(f"Line {item.id} of cart {cart_id} no longer resolves: {e}")
                unresolved.append(item.id)
                continue

            lines.append(
                LineTotal(
                    line_id=item.id,
                    product_id=item.product_id,
                    signature=resolution.signature,
                    quantity=item.quantity,
                    unit_price=resolution.unit_price,
                    line_total=resolution.unit_price * item.quantity,
                    available_stock=resolution.available_stock,
                )
            )

        return CartTotal(
            cart_id=cart_id,
            subtotal=sum(line.line_total for line in lines),
            lines=tuple(lines),
            unresolved_line_ids=tuple(unresolved),
        )

    def total(self, cart_id: int) -> CartTotal:
        summary = self.summarize(cart_id)
        if not summary.complete:
            raise ProductUnavailable(
                f"{len(summary.unresolved_line_ids)} line(s) of cart {cart_id} cannot be priced",
                unresolved_line_ids=summary.unresolved_line_ids,
                partial=summary,
            )
        return summary
