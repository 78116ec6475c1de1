from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from variant_cart.data.models.cart import CartModel
from variant_cart.data.models.cart_item import CartItemModel
from variant_cart.domain.errors import (
    CartNotFound,
    ConcurrencyConflict,
    InvalidSelection,
    MissingRequiredFeature,
    ProductUnavailable,
    StockClamped,
)
from variant_cart.domain.quantity import CartMode, apply_mode, check_quantity, clamp_to_stock
from variant_cart.domain.signature import CombinationSignature, Selection
from variant_cart.repos.cart_repo import CartRepo
from variant_cart.services.lock_service import LockService, line_lock_key
from variant_cart.services.notification_service import LOW_STOCK_EVENT, NotificationService
from variant_cart.services.variant_resolver import Resolution, VariantResolver
from variant_cart.utils.settings import CART_TTL_SECONDS, LOW_STOCK_THRESHOLD
from variant_cart.utils.logging import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # sqlite oddaje naive datetime
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class MutationResult:
    cart_id: int
    line_id: Optional[int]
    product_id: int
    signature: CombinationSignature
    quantity: int
    unit_price: int
    line_total: int
    action: str  # added | updated | removed | unchanged
    stock_clamped: Optional[StockClamped] = None


class CartService:
    """
    Komendy na koszyku: mutate (increment/decrement/set/clear/max),
    usuwanie linii, czyszczenie, merge anonimowego koszyka po logowaniu.

    Stock sprawdzamy tylko informacyjnie (clamp do aktualnie widzianego stocku),
    koszyk NIE rezerwuje towaru - rezerwacja "N sztuk albo blad" jest w workflow zamowien.
    """

    def __init__(
        self,
        db: Session,
        catalog,
        resolver: VariantResolver,
        lock_service: LockService,
        notifier: Optional[NotificationService] = None,
    ):
        self.repo = CartRepo(db)
        self.catalog = catalog
        self.resolver = resolver
        self.lock_service = lock_service
        self.notifier = notifier

    #query
    def get_cart(self, cart_id: int, user_id: Optional[int] = None) -> CartModel:
        cart = self.repo.get_cart(cart_id)

        if not cart or self._expired(cart):
            raise CartNotFound(cart_id)

        if cart.user_id is not None and cart.user_id != user_id:
            raise PermissionError("Brak dostepu do koszyka")

        return cart

    #commands
    def get_or_create_cart(self, user_id: Optional[int] = None) -> CartModel:
        if user_id is not None:
            existing = self.repo.get_cart_by_user(user_id)
            if existing:
                return existing

        # koszyk uzytkownika nie wygasa, anonimowy po TTL
        expires = None if user_id is not None else utcnow() + timedelta(seconds=CART_TTL_SECONDS)
        created = self.repo.create_cart(CartModel(user_id=user_id, expires_at=expires))

        logger.info(f"Utworzono nowy koszyk {created.id} dla uzytkownika {user_id}")
        return created

    def mutate(
        self,
        cart_id: Optional[int],
        product_id: int,
        selection: Selection,
        mode: CartMode,
        value: int = 1,
        ignore_stock: bool = False,
        user_id: Optional[int] = None,
    ) -> MutationResult:
        mode = CartMode(mode)
        check_quantity(value)

        product = self.catalog.get_product(product_id)
        if product is None:
            raise ProductUnavailable(f"Produkt {product_id} jest niedostepny", product_id=product_id)

        # walidacja wyboru przed jakakolwiek zmiana w koszyku
        resolution = self.resolver.resolve(product, selection)

        cart = self.get_cart(cart_id, user_id) if cart_id is not None else self.get_or_create_cart(user_id)
        key = line_lock_key(cart.id, product.id, resolution.signature.key)

        with self.lock_service.hold(key):
            try:
                result = self._apply(cart, product.id, resolution, mode, value, ignore_stock)
            except Exception as e:
                logger.error(f"Blad zmiany koszyka {cart.id}: {e}")
                self.repo.rollback()
                raise

        logger.info(
            f"Koszyk {cart.id} {mode.value}({value}) produkt {product.id} {resolution.signature}: "
            f"{result.action}, ilosc {result.quantity}"
        )
        self._notify_low_stock(result, resolution)
        return result

    def remove_line(self, cart_id: int, line_id: int, user_id: Optional[int] = None) -> CartModel:
        cart = self.get_cart(cart_id, user_id)
        item = self.repo.get_cart_item_by_id(cart.id, line_id)
        if not item:
            raise CartNotFound(cart_id, line_id=line_id)

        with self.lock_service.hold(line_lock_key(cart.id, item.product_id, item.signature_key)):
            self.repo.delete_item(item.id)
            self.repo.commit()

        logger.info(f"Usunieto linie {line_id} z koszyka {cart_id}")
        return cart

    def clear_cart(self, cart_id: int, user_id: Optional[int] = None) -> CartModel:
        cart = self.get_cart(cart_id, user_id)
        removed = self.repo.delete_cart_items(cart.id)
        self.repo.commit()

        logger.info(f"Wyczyszczono koszyk {cart_id}, usunieto linii: {removed}")
        return cart

    def merge_carts(self, anonymous_cart_id: int, user_id: int) -> CartModel:
        """
        Po zalogowaniu: linie anonimowego koszyka trafiaja do koszyka usera.
        Suma ilosci przycinana do stocku, linie bez produktu w katalogu przepadaja.
        """
        temp = self.repo.get_cart(anonymous_cart_id)
        if not temp or not temp.is_anonymous or self._expired(temp):
            raise CartNotFound(anonymous_cart_id)

        target = self.get_or_create_cart(user_id)

        for item in self.repo.get_cart_items(temp.id):
            resolution = self._resolve_line(item)
            if resolution is None:
                logger.warning(
                    f"Pomijam linie {item.id} koszyka {temp.id}: produkt {item.product_id} nie jest juz dostepny"
                )
                continue

            key = line_lock_key(target.id, item.product_id, resolution.signature.key)
            with self.lock_service.hold(key):
                try:
                    existing = self.repo.get_cart_item(target.id, item.product_id, resolution.signature.key)
                    total = (existing.quantity if existing else 0) + item.quantity
                    quantity, _ = clamp_to_stock(
                        total, resolution.available_stock, resolution.decreases_stock, ignore_stock=False
                    )
                    self._write_line(target.id, item.product_id, resolution.signature, existing, quantity)
                    self.repo.commit()
                except Exception:
                    self.repo.rollback()
                    raise

        self.repo.delete_cart(temp)
        self.repo.commit()

        logger.info(f"Polaczono koszyk {anonymous_cart_id} z koszykiem {target.id} uzytkownika {user_id}")
        return target

    #internals
    def _apply(self, cart: CartModel, product_id: int, resolution: Resolution, mode: CartMode, value: int, ignore_stock: bool) -> MutationResult:
        signature = resolution.signature
        item = self.repo.get_cart_item(cart.id, product_id, signature.key)
        current = item.quantity if item else 0

        requested = apply_mode(current, mode, value)
        quantity, clamped = clamp_to_stock(
            requested, resolution.available_stock, resolution.decreases_stock, ignore_stock
        )

        signal = None
        if clamped:
            signal = StockClamped(
                product_id=product_id,
                signature=str(signature),
                requested=requested,
                allowed=quantity,
            )

        action, line_id = self._write_line(cart.id, product_id, signature, item, quantity)

        if cart.is_anonymous:
            # user jest aktywny, przedluzamy waznosc koszyka
            self.repo.touch_cart(cart.id, utcnow() + timedelta(seconds=CART_TTL_SECONDS))

        self.repo.commit()

        return MutationResult(
            cart_id=cart.id,
            line_id=line_id,
            product_id=product_id,
            signature=signature,
            quantity=quantity,
            unit_price=resolution.unit_price,
            line_total=resolution.unit_price * quantity,
            action=action,
            stock_clamped=signal,
        )

    def _write_line(self, cart_id: int, product_id: int, signature: CombinationSignature, item: Optional[CartItemModel], quantity: int):
        if quantity == 0:
            if not item:
                return "unchanged", None
            # linia z iloscia 0 nie istnieje
            if self.repo.delete_item(item.id, item.version) == 0:
                raise ConcurrencyConflict("Linia koszyka zostala zmieniona przez inna operacje")
            return "removed", None

        if item:
            if item.quantity == quantity:
                return "unchanged", item.id
            # optimistic locking na wersji linii
            if self.repo.update_item_quantity(item.id, item.version, quantity) == 0:
                raise ConcurrencyConflict("Linia koszyka zostala zmieniona przez inna operacje")
            return "updated", item.id

        try:
            created = self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart_id,
                    product_id=product_id,
                    signature_key=signature.key,
                    bind=signature.to_pairs(),
                    quantity=quantity,
                    version=1,
                )
            )
        except IntegrityError:
            raise ConcurrencyConflict("Linia koszyka zostala utworzona przez inna operacje") from None
        return "added", created.id

    def _resolve_line(self, item: CartItemModel) -> Optional[Resolution]:
        product = self.catalog.get_product(item.product_id)
        if product is None:
            return None
        try:
            return self.resolver.resolve(product, item.signature.to_selection())
        except (InvalidSelection, MissingRequiredFeature):
            return None

    def _expired(self, cart: CartModel) -> bool:
        return cart.expires_at is not None and as_utc(cart.expires_at) < utcnow()

    def _notify_low_stock(self, result: MutationResult, resolution: Resolution) -> None:
        if self.notifier is None or not resolution.decreases_stock or resolution.unlimited:
            return
        if result.stock_clamped is None and resolution.available_stock > LOW_STOCK_THRESHOLD:
            return
        self.notifier.publish(
            LOW_STOCK_EVENT,
            {
                "product_id": result.product_id,
                "signature": result.signature.to_pairs(),
                "available_stock": resolution.available_stock,
                "cart_quantity": result.quantity,
                "clamped": result.stock_clamped is not None,
            },
        )
