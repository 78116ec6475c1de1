# variant_cart/services/notification_service.py
from variant_cart.celery_worker import celery_app
from variant_cart.utils.logging import get_logger

logger = get_logger(__name__)

LOW_STOCK_EVENT = "stock.low"


class NotificationService:
    """
    Fire-and-forget eventy (np. niski stock).
    Dostarczenie to sprawa Celery/brokera, tu tylko publish.
    """

    def publish(self, event: str, payload: dict) -> None:
        try:
            publish_event_task.delay(event, payload)
        except Exception as e:
            # broker niedostepny nie moze wywrocic operacji na koszyku
            logger.warning(f"Failed to publish {event}: {e}")


@celery_app.task(name="variant_cart.services.notification_service.publish_event_task")
def publish_event_task(event: str, payload: dict):
    """
    Celery task - konsument eventu (alert mailowy/slack itp.).
    Teraz tylko loguje.
    """
    logger.info(f"[EVENT] {event}: {payload}")
    return {"event": event, "payload": payload, "status": "sent"}
