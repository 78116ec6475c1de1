# variant_cart/repos/catalog_repo.py
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from variant_cart.data.models.feature import FeatureModel
from variant_cart.data.models.override import OverrideModel
from variant_cart.data.models.product import ProductModel
from variant_cart.domain.options import Feature, Product
from variant_cart.domain.overrides import Override


class CatalogRepo:
    """
    Odczyt katalogu z bazy (tylko fetch, CRUD admina jest poza serwisem).
    Zwraca obiekty domenowe, nie modele ORM.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> Optional[Product]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .options(selectinload(ProductModel.features).selectinload(FeatureModel.values))
            .execution_options(populate_existing=True)
        )
        row = self.db.execute(stmt).scalar_one_or_none()
        return row.to_domain() if row else None

    def get_features_and_values(self, product_id: int) -> Tuple[Feature, ...]:
        stmt = (
            select(FeatureModel)
            .where(FeatureModel.product_id == product_id)
            .options(selectinload(FeatureModel.values))
            .order_by(FeatureModel.index)
        )
        return tuple(f.to_domain() for f in self.db.execute(stmt).scalars().all())

    def get_overrides(self, product_id: int) -> List[Override]:
        stmt = (
            select(OverrideModel)
            .where(OverrideModel.product_id == product_id)
            .order_by(OverrideModel.id)
        )
        return [o.to_domain() for o in self.db.execute(stmt).scalars().all()]
