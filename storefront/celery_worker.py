# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import get_settings

settings = get_settings()

celery_app = Celery(
    "storefront",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# explicit imports so the worker registers the tasks
celery_app.conf.imports = ("storefront.services.notification_service",)

celery_app.conf.task_always_eager = settings.celery_task_always_eager
celery_app.conf.timezone = "UTC"
