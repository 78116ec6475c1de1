# variant_cart/celery_worker.py
from celery import Celery

from variant_cart.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "variant_cart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "variant_cart.tasks.expire",
    "variant_cart.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "purge-expired-carts-every-minute": {
        "task": "variant_cart.tasks.expire.purge_expired_carts_task",
        "schedule": 60.0,
    },
}

celery_app.conf.timezone = "UTC"
