# variant_cart/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import relationship

from variant_cart.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    # NULL = koszyk anonimowy (sesja)
    user_id = Column(Integer, nullable=True, index=True)

    # tylko anonimowe koszyki wygasaja
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None
