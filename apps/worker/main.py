"""Celery worker entrypoint.

Run with: celery -A apps.worker.main:celery_app worker -Q maintenance,default --loglevel=info
Schedule with: celery -A apps.worker.main:celery_app beat

This module imports the Celery app and explicitly registers all tasks.
Task definitions are in zenvi.tasks package - no autodiscovery.

Logging Convention:
- All task log entries include request_id, task_name, task_id when available
- Tasks accept `request_id: str | None = None` parameter for correlation
- Wrap each task body in task_logging_context() to set up that context

Queue Configuration:
- maintenance: Counter reconciliation and other housekeeping
- default: General background tasks
"""

from celery.signals import worker_process_init

from zenvi.celery import celery_app
from zenvi.config import get_settings
from zenvi.logging import configure_logging, get_logger

# =============================================================================
# Task Registration (explicit imports - no autodiscovery)
# =============================================================================

# Each import registers the task with the celery_app
from zenvi.tasks import reconcile_like_counts  # noqa: F401

# =============================================================================
# Worker Lifecycle
# =============================================================================


@worker_process_init.connect
def setup_worker_logging(**kwargs):
    """Configure structlog when worker process starts.

    Worker logs use the same structured format as the FastAPI application.
    """
    settings = get_settings()
    configure_logging(json_format=settings.log_json, level=settings.log_level)
    logger = get_logger(__name__)
    logger.info("celery_worker_started", queues=["maintenance", "default"])


# Export celery_app for Celery to find
# Command: celery -A apps.worker.main:celery_app worker ...
__all__ = ["celery_app"]
