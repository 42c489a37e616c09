"""
Celery tasks package.

Tasks are organized by domain:
- archive_tasks: Periodic archiving of stale job applications
"""

from app.tasks import archive_tasks

__all__ = ["archive_tasks"]
