"""Celery task that repairs drifted like counters.

Post.like_count is updated in the same transaction as the Like rows, so
drift should never happen; this job recounts from the Like rows (ground
truth) and fixes any counter that disagrees, logging each correction.
Scheduled by celery beat (see zenvi.celery).
"""

from zenvi.celery import celery_app
from zenvi.db.session import get_session_factory
from zenvi.logging import get_logger, task_logging_context
from zenvi.services import likes as likes_service

logger = get_logger(__name__)


@celery_app.task(bind=True, max_retries=0, name="reconcile_like_counts")
def reconcile_like_counts(self, request_id: str | None = None) -> dict:
    """Recount like_count for every post.

    Args:
        request_id: Optional request ID for log correlation.

    Returns:
        Dict with the number of corrected posts.
    """
    with task_logging_context("reconcile_like_counts", self.request.id, request_id):
        logger.info("reconcile_like_counts_started")

        # Worker doesn't use FastAPI DI
        db = get_session_factory()()
        try:
            corrected = likes_service.reconcile_like_counts(db)
        except Exception as e:
            logger.error("reconcile_like_counts_failed", error=str(e))
            raise
        finally:
            db.close()

        logger.info("reconcile_like_counts_completed", corrected=corrected)
        return {"status": "ok", "corrected": corrected}
