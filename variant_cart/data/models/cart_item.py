# variant_cart/data/models/cart_item.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from variant_cart.data.database import Base
from variant_cart.domain.signature import CombinationSignature


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    # bez FK, produkt moze zniknac z katalogu
    product_id = Column(Integer, nullable=False)

    signature_key = Column(String(64), nullable=False)
    bind = Column(JSON, nullable=False)

    quantity = Column(Integer, nullable=False)
    # compare-and-set na ilosci
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    cart = relationship("CartModel", back_populates="items")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", "signature_key", name="u_cart_line"),
    )

    @property
    def signature(self) -> CombinationSignature:
        return CombinationSignature.from_pairs(self.bind)
