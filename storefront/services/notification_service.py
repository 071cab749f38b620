# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Buyer notifications, processed asynchronously by Celery.
    Callers run these after their transaction has committed.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int):
        """Order placed and waiting for payment."""
        send_order_notification_task.delay(user_id, order_id)

    @staticmethod
    def send_payment_notification(user_id: int, order_id: int, status: str):
        """Payment status of an order changed."""
        send_payment_notification_task.delay(user_id, order_id, status)


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int):
    # delivery channel (email, push) is out of scope, the log line is the notification
    logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} placed, awaiting payment")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_payment_notification_task")
def send_payment_notification_task(user_id: int, order_id: int, status: str):
    logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} payment {status}")
    return {"user_id": user_id, "order_id": order_id, "payment_status": status, "status": "sent"}
