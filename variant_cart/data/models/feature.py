# variant_cart/data/models/feature.py
from sqlalchemy import Column, Integer, ForeignKey, String, Boolean, Float
from sqlalchemy.orm import relationship

from variant_cart.data.database import Base
from variant_cart.domain.options import Feature


class FeatureModel(Base):
    __tablename__ = "features"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    type = Column(String(32), nullable=False)
    required = Column(Boolean, nullable=False, default=False)
    index = Column(Integer, nullable=False, default=0)
    default_value = Column(String, nullable=True)

    min = Column(Float, nullable=True)
    max = Column(Float, nullable=True)
    min_size = Column(Integer, nullable=True)
    max_size = Column(Integer, nullable=True)
    multiple = Column(Boolean, nullable=False, default=False)

    product = relationship("ProductModel", back_populates="features")
    values = relationship(
        "ValueModel",
        back_populates="feature",
        cascade="all, delete-orphan",
        order_by="ValueModel.index",
    )

    def to_domain(self) -> Feature:
        return Feature(
            id=self.id,
            name=self.name,
            type=self.type,
            required=bool(self.required),
            index=self.index or 0,
            values=tuple(v.to_domain() for v in self.values),
            default_value=self.default_value,
            min=self.min,
            max=self.max,
            min_size=self.min_size,
            max_size=self.max_size,
            multiple=bool(self.multiple),
        )
