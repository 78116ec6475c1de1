#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from variant_cart.data.models.product import ProductModel
from variant_cart.data.models.feature import FeatureModel
from variant_cart.data.models.value import ValueModel
from variant_cart.data.models.override import OverrideModel
from variant_cart.data.models.cart import CartModel
from variant_cart.data.models.cart_item import CartItemModel

__all__ = [
    "ProductModel",
    "FeatureModel",
    "ValueModel",
    "OverrideModel",
    "CartModel",
    "CartItemModel",
]
