# variant_cart/data/models/value.py
from sqlalchemy import Column, Integer, ForeignKey, String, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship

from variant_cart.data.database import Base
from variant_cart.domain.options import Value


class ValueModel(Base):
    __tablename__ = "values"

    id = Column(Integer, primary_key=True)
    feature_id = Column(Integer, ForeignKey("features.id", ondelete="CASCADE"), nullable=False, index=True)

    key = Column(String, nullable=False)
    text = Column(String, nullable=False, default="")
    index = Column(Integer, nullable=False, default=0)

    additional_price = Column(Integer, nullable=False, default=0)
    stock = Column(Integer, nullable=True)  # NULL = bez limitu
    decreases_stock = Column(Boolean, nullable=False, default=False)
    continue_selling = Column(Boolean, nullable=False, default=False)

    feature = relationship("FeatureModel", back_populates="values")

    __table_args__ = (UniqueConstraint("feature_id", "key", name="u_feature_value_key"),)

    def to_domain(self) -> Value:
        return Value(
            id=self.id,
            key=self.key,
            text=self.text or "",
            additional_price=self.additional_price or 0,
            stock=self.stock,
            decreases_stock=bool(self.decreases_stock),
            continue_selling=bool(self.continue_selling),
            index=self.index or 0,
        )
