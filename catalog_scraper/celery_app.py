"""
Celery application configuration for the catalog scraper.

Runs the full catalog scrape on a schedule so the snapshot handed to the
persistence layer stays fresh.
"""
from celery import Celery

from catalog_scraper.config import settings

# Create Celery app
celery_app = Celery(
    "catalog_scraper",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "catalog_scraper.tasks.scrape_tasks",
    ],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="America/New_York",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,  # A full scrape holds thousands of sockets

    # Result settings
    result_expires=3600,

    # Beat scheduler (for periodic tasks)
    beat_schedule={
        "scrape-catalog": {
            "task": "catalog_scraper.tasks.scrape_tasks.scrape_catalog_task",
            "schedule": float(settings.scrape_interval),
        },
    },
)


def get_celery_app() -> Celery:
    """Get the Celery application instance."""
    return celery_app
