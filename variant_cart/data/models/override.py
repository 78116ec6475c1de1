# variant_cart/data/models/override.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, Boolean, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from variant_cart.data.database import Base
from variant_cart.domain.overrides import Override
from variant_cart.domain.signature import CombinationSignature


class OverrideModel(Base):
    __tablename__ = "group_products"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String(16), nullable=False, default="group")

    # sha256 z kanonicznej sygnatury, po tym szukamy
    signature_key = Column(String(64), nullable=False)
    # pary [feature_id, value_key] posortowane, do odtworzenia sygnatury
    bind = Column(JSON, nullable=False)

    additional_price = Column(Integer, nullable=False, default=0)
    stock = Column(Integer, nullable=True)
    decreases_stock = Column(Boolean, nullable=False, default=True)
    continue_selling = Column(Boolean, nullable=False, default=False)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    product = relationship("ProductModel")

    # jeden rekord na (produkt, kombinacja, rodzaj), prefiks sluzy tez jako indeks lookupu
    __table_args__ = (
        UniqueConstraint("product_id", "signature_key", "kind", name="u_group_product_signature"),
    )

    @property
    def signature(self) -> CombinationSignature:
        return CombinationSignature.from_pairs(self.bind)

    def to_domain(self) -> Override:
        return Override(
            signature=self.signature,
            kind=self.kind,
            additional_price=self.additional_price or 0,
            stock=self.stock,
            decreases_stock=bool(self.decreases_stock),
            continue_selling=bool(self.continue_selling),
        )
