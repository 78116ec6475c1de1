# variant_cart/repos/cart_repo.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from variant_cart.data.models.cart import CartModel
from variant_cart.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    #carts
    def get_cart(self, cart_id: int) -> Optional[CartModel]:
        return self.db.get(CartModel, cart_id)

    def get_cart_by_user(self, user_id: int) -> Optional[CartModel]:
        stmt = select(CartModel).where(CartModel.user_id == user_id).order_by(CartModel.id)
        return self.db.execute(stmt).scalars().first()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def touch_cart(self, cart_id: int, expires_at: datetime) -> None:
        self.db.execute(
            update(CartModel).where(CartModel.id == cart_id).values(expires_at=expires_at)
        )

    def delete_cart(self, cart: CartModel) -> None:
        self.db.delete(cart)

    def get_expired_anonymous_carts(self, now: datetime) -> List[CartModel]:
        stmt = select(CartModel).where(
            CartModel.user_id.is_(None),
            CartModel.expires_at.is_not(None),
            CartModel.expires_at < now,
        )
        return list(self.db.execute(stmt).scalars().all())

    #lines
    def get_cart_items(self, cart_id: int) -> List[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.id)
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_cart_item(self, cart_id: int, product_id: int, signature_key: str) -> Optional[CartItemModel]:
        # populate_existing: po zdobyciu locka chcemy swieza ilosc, nie z identity map
        stmt = (
            select(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
                CartItemModel.signature_key == signature_key,
            )
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cart_item_by_id(self, cart_id: int, item_id: int) -> Optional[CartItemModel]:
        stmt = select(CartItemModel).where(
            CartItemModel.cart_id == cart_id,
            CartItemModel.id == item_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def update_item_quantity(self, item_id: int, old_version: int, quantity: int) -> int:
        # UPDATE ... SET quantity=?, version=old+1 WHERE id=? AND version=old
        result = self.db.execute(
            update(CartItemModel)
            .where(CartItemModel.id == item_id, CartItemModel.version == old_version)
            .values(quantity=quantity, version=old_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_item(self, item_id: int, old_version: Optional[int] = None) -> int:
        stmt = delete(CartItemModel).where(CartItemModel.id == item_id)
        if old_version is not None:
            stmt = stmt.where(CartItemModel.version == old_version)
        result = self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount

    def delete_cart_items(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
