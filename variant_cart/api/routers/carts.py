#variant_cart/api/routers/carts.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from variant_cart.data.database import get_db
from variant_cart.data.models.cart import CartModel
from variant_cart.domain.errors import (
    AmbiguousOverride,
    CartCoreError,
    CartNotFound,
    ConcurrencyConflict,
    ProductUnavailable,
)
from variant_cart.domain.schemas import (
    CartLineOut,
    CartMutationIn,
    CartOut,
    CreateCartIn,
    MergeCartsIn,
    MutationOut,
)
from variant_cart.repos.catalog_repo import CatalogRepo
from variant_cart.services.cart_aggregator import CartAggregator
from variant_cart.services.cart_service import CartService
from variant_cart.services.lock_service import LineBusy, LockService
from variant_cart.services.notification_service import NotificationService
from variant_cart.services.override_store import InMemoryOverrideStore, SqlOverrideStore
from variant_cart.services.product_client import ProductClient
from variant_cart.services.variant_resolver import VariantResolver
from variant_cart.utils.settings import CATALOG_BACKEND

router = APIRouter(prefix="/carts", tags=["carts"])

# wspoldzielony miedzy requestami, odswiezany przez ProductClient
_remote_overrides = InMemoryOverrideStore()


class CartContext:
    def __init__(self, service: CartService, aggregator: CartAggregator):
        self.service = service
        self.aggregator = aggregator


def get_cart_context(db: Session = Depends(get_db)) -> CartContext:
    if CATALOG_BACKEND == "http":
        catalog = ProductClient(override_store=_remote_overrides)
        resolver = VariantResolver(_remote_overrides)
    else:
        catalog = CatalogRepo(db)
        resolver = VariantResolver(SqlOverrideStore(db))

    service = CartService(
        db=db,
        catalog=catalog,
        resolver=resolver,
        lock_service=LockService(),
        notifier=NotificationService(),
    )
    return CartContext(service, CartAggregator(db, catalog, resolver))


def _http_error(e: Exception) -> HTTPException:
    detail = e.to_dict() if isinstance(e, CartCoreError) else str(e)
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=detail)
    if isinstance(e, (CartNotFound, ProductUnavailable)):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(e, (AmbiguousOverride, ConcurrencyConflict, LineBusy)):
        return HTTPException(status_code=409, detail=detail)
    return HTTPException(status_code=400, detail=detail)


def _cart_out(ctx: CartContext, cart: CartModel) -> dict:
    summary = ctx.aggregator.summarize(cart.id)
    return {
        "cart_id": cart.id,
        "user_id": cart.user_id,
        "items": [
            CartLineOut(
                line_id=line.line_id,
                product_id=line.product_id,
                bind=line.signature.to_pairs(),
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total,
                available_stock=line.available_stock,
            )
            for line in summary.lines
        ],
        "total": summary.subtotal,
        "unresolved_line_ids": list(summary.unresolved_line_ids),
        "expires_at": cart.expires_at,
    }


def _mutate(ctx: CartContext, cart_id: Optional[int], payload: CartMutationIn, user_id: Optional[int]) -> dict:
    try:
        result = ctx.service.mutate(
            cart_id=cart_id,
            product_id=payload.product_id,
            selection=payload.bind,
            mode=payload.mode,
            value=payload.value,
            ignore_stock=payload.ignore_stock,
            user_id=user_id,
        )
        cart = ctx.service.get_cart(result.cart_id, user_id)
        cart_view = _cart_out(ctx, cart)
    except (CartCoreError, PermissionError, LineBusy) as e:
        raise _http_error(e)

    return {
        "action": result.action,
        "line_id": result.line_id,
        "quantity": result.quantity,
        "unit_price": result.unit_price,
        "line_total": result.line_total,
        "stock_clamped": result.stock_clamped.to_dict() if result.stock_clamped else None,
        "cart": cart_view,
    }


@router.post("/", response_model=CartOut)
def create_cart(payload: CreateCartIn, ctx: CartContext = Depends(get_cart_context)):
    try:
        cart = ctx.service.get_or_create_cart(payload.user_id)
        return _cart_out(ctx, cart)
    except CartCoreError as e:
        raise _http_error(e)


@router.post("/lines", response_model=MutationOut)
def mutate_new_cart(
    payload: CartMutationIn,
    user_id: Optional[int] = Query(None),
    ctx: CartContext = Depends(get_cart_context),
):
    return _mutate(ctx, None, payload, user_id)


@router.post("/merge", response_model=CartOut)
def merge_carts(payload: MergeCartsIn, ctx: CartContext = Depends(get_cart_context)):
    try:
        cart = ctx.service.merge_carts(payload.anonymous_cart_id, payload.user_id)
        return _cart_out(ctx, cart)
    except (CartCoreError, LineBusy) as e:
        raise _http_error(e)


@router.get("/{cart_id}", response_model=CartOut)
def get_cart(
    cart_id: int,
    user_id: Optional[int] = Query(None),
    ctx: CartContext = Depends(get_cart_context),
):
    try:
        cart = ctx.service.get_cart(cart_id, user_id)
        return _cart_out(ctx, cart)
    except (CartCoreError, PermissionError) as e:
        raise _http_error(e)


@router.post("/{cart_id}/lines", response_model=MutationOut)
def mutate_line(
    cart_id: int,
    payload: CartMutationIn,
    user_id: Optional[int] = Query(None),
    ctx: CartContext = Depends(get_cart_context),
):
    return _mutate(ctx, cart_id, payload, user_id)


@router.delete("/{cart_id}/lines/{line_id}", response_model=CartOut)
def remove_line(
    cart_id: int,
    line_id: int,
    user_id: Optional[int] = Query(None),
    ctx: CartContext = Depends(get_cart_context),
):
    try:
        cart = ctx.service.remove_line(cart_id, line_id, user_id)
        return _cart_out(ctx, cart)
    except (CartCoreError, PermissionError, LineBusy) as e:
        raise _http_error(e)


@router.delete("/{cart_id}/lines", response_model=CartOut)
def clear_cart(
    cart_id: int,
    user_id: Optional[int] = Query(None),
    ctx: CartContext = Depends(get_cart_context),
):
    try:
        cart = ctx.service.clear_cart(cart_id, user_id)
        return _cart_out(ctx, cart)
    except (CartCoreError, PermissionError) as e:
        raise _http_error(e)
