"""Celery tasks for Zenvi.

Tasks are explicitly imported here to register them with Celery.
No autodiscovery - all tasks must be imported in this module.
"""

from zenvi.tasks.reconcile_like_counts import reconcile_like_counts

__all__ = ["reconcile_like_counts"]
