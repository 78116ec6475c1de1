# variant_cart/data/models/product.py
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from variant_cart.data.database import Base
from variant_cart.domain.options import Product


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    # cena bazowa w groszach/centach
    base_price = Column(Integer, nullable=False, default=0)
    currency = Column(String(8), nullable=False, default="USD")

    features = relationship(
        "FeatureModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="FeatureModel.index",
    )

    def to_domain(self) -> Product:
        return Product(
            id=self.id,
            name=self.name,
            base_price=self.base_price,
            currency=self.currency,
            features=tuple(f.to_domain() for f in self.features),
        )
