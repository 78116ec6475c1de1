# variant_cart/tasks/expire.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from variant_cart.celery_worker import celery_app
from variant_cart.data.database import SessionLocal
from variant_cart.repos.cart_repo import CartRepo
from variant_cart.utils.logging import get_logger

logger = get_logger(__name__)


def purge_expired_carts(db: Session, now: datetime | None = None) -> int:
    """Usuwa anonimowe koszyki po TTL razem z liniami. Koszyki userow nie wygasaja."""
    now = now or datetime.now(timezone.utc)
    repo = CartRepo(db)

    carts = repo.get_expired_anonymous_carts(now)
    logger.info(f"Found {len(carts)} expired carts to purge")

    for cart in carts:
        repo.delete_cart(cart)
    repo.commit()
    return len(carts)


@celery_app.task(name="variant_cart.tasks.expire.purge_expired_carts_task")
def purge_expired_carts_task():
    logger.info("Purge expired carts task started")

    db = SessionLocal()
    try:
        return purge_expired_carts(db)
    finally:
        db.close()
