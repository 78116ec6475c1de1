# variant_cart/domain/quantity.py
from enum import Enum

from variant_cart.domain.errors import InvalidQuantity


class CartMode(str, Enum):
    INCREMENT = "increment"
    DECREMENT = "decrement"
    SET = "set"
    CLEAR = "clear"
    MAX = "max"


def check_quantity(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidQuantity(value)
    return value


def apply_mode(current: int, mode: CartMode, value: int) -> int:
    """Nowa ilosc linii po komendzie, przed sprawdzeniem stocku."""
    check_quantity(value)

    mode = CartMode(mode)
    if mode == CartMode.INCREMENT:
        return current + value
    if mode == CartMode.DECREMENT:
        return max(0, current - value)
    if mode == CartMode.SET:
        return value
    if mode == CartMode.CLEAR:
        return 0
    return max(current, value)


def clamp_to_stock(quantity: int, available_stock, decreases_stock: bool, ignore_stock: bool):
    """Zwraca (ilosc, czy_przycieto). available_stock=None to brak limitu."""
    if ignore_stock or not decreases_stock or available_stock is None:
        return quantity, False
    allowed = max(0, available_stock)
    if quantity > allowed:
        return allowed, True
    return quantity, False
