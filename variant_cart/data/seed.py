# variant_cart/data/seed.py
from sqlalchemy.orm import Session

from variant_cart.data.database import SessionLocal
from variant_cart.data.models import FeatureModel, OverrideModel, ProductModel, ValueModel
from variant_cart.domain.signature import CombinationSignature


def seed_demo_catalog(db: Session) -> ProductModel:
    """
    Koszulka: kolor (wymagany), rozmiar (wymagany, XL ma limit 3 szt.),
    nadruk (multi-select, opcjonalny) + override dla blue/XL.
    """
    product = ProductModel(name="T-shirt", base_price=1000, currency="USD")

    color = FeatureModel(name="color", type="single_select", required=True, index=0)
    color.values = [
        ValueModel(key="red", text="Red", index=0),
        ValueModel(key="blue", text="Blue", index=1),
    ]

    size = FeatureModel(name="size", type="single_select", required=True, index=1)
    size.values = [
        ValueModel(key="M", text="M", index=0),
        ValueModel(key="XL", text="XL", additional_price=200, stock=3, decreases_stock=True, index=1),
    ]

    prints = FeatureModel(name="print", type="multi_select", required=False, index=2, multiple=True)
    prints.values = [
        ValueModel(key="front", text="Front print", additional_price=150, index=0),
        ValueModel(key="back", text="Back print", additional_price=150, index=1),
    ]

    product.features = [color, size, prints]
    db.add(product)
    db.flush()

    blue_xl = CombinationSignature.from_selection({color.id: "blue", size.id: "XL"})
    db.add(
        OverrideModel(
            product_id=product.id,
            kind="group",
            signature_key=blue_xl.key,
            bind=blue_xl.to_pairs(),
            additional_price=-100,
            stock=1,
            decreases_stock=True,
        )
    )
    db.commit()
    db.refresh(product)
    return product


def seed():
    db = SessionLocal()
    try:
        # tylko jesli katalog jest pusty
        if db.query(ProductModel).first():
            return
        seed_demo_catalog(db)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
