"""Celery application configuration.

Central configuration for Celery used by both API (for enqueuing)
and worker (for executing tasks).

Usage:
    from zenvi.tasks import reconcile_like_counts

    reconcile_like_counts.apply_async(kwargs={"request_id": request_id})
"""

from celery import Celery

from zenvi.config import get_settings

settings = get_settings()

# Seconds between scheduled like-counter reconciliations
RECONCILE_LIKE_COUNTS_INTERVAL = 60 * 60

# Create Celery app
celery_app = Celery("zenvi")

# Configure from settings
celery_app.conf.broker_url = settings.effective_celery_broker_url
celery_app.conf.result_backend = settings.effective_celery_result_backend

# Task configuration
celery_app.conf.task_serializer = "json"
celery_app.conf.result_serializer = "json"
celery_app.conf.accept_content = ["json"]
celery_app.conf.timezone = "UTC"
celery_app.conf.enable_utc = True

# Queue routing for maintenance tasks
celery_app.conf.task_routes = {
    "reconcile_like_counts": {"queue": "maintenance"},
}

# Default queue
celery_app.conf.task_default_queue = "default"

# Periodic jobs (run with `celery beat`)
celery_app.conf.beat_schedule = {
    "reconcile-like-counts": {
        "task": "reconcile_like_counts",
        "schedule": RECONCILE_LIKE_COUNTS_INTERVAL,
    },
}

# For testing: allow eager mode (synchronous execution)
celery_app.conf.task_always_eager = False


def get_celery_app() -> Celery:
    """Get the Celery application instance.

    Returns:
        Configured Celery application.
    """
    return celery_app
