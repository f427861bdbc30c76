from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from app.config import settings
from app.core.logging import setup_logging

celery_app = Celery(
    "evplanner",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    task_track_started=True,
    result_expires=86400,
    # One analysis holds a worker for minutes; don't prefetch a second one
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    # PVGIS downloads are slow and rate limited upstream
    task_routes={"build_solar_reference_profiles": {"queue": "reference"}},
    include=["app.worker.tasks"],
)


@celery_setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    """Use the service's formatters instead of Celery's default handlers."""
    setup_logging(json_format=settings.log_json, level=settings.log_level)
