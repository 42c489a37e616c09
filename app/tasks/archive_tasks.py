"""
Celery tasks for pipeline housekeeping.
"""

import logging
from typing import Optional
from app.core.celery_app import celery_app
from app.core.config import settings
from app.core.database import SessionLocal
from app.crud import job as job_crud

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.archive_tasks.archive_stale_applications_task", bind=True)
def archive_stale_applications_task(self, days: Optional[int] = None):
    """
    Archive job applications that have sat untouched for too long.

    Applications older than `days` (default AUTO_ARCHIVE_DAYS) that are
    neither archived nor hired are set to archived. Scheduled daily by
    Celery beat.

    Returns:
        dict: Number of applications archived
    """
    days = days if days is not None else settings.AUTO_ARCHIVE_DAYS
    db = SessionLocal()

    try:
        archived_count = job_crud.archive_stale_applications(db, days)
        logger.info(f"[Task {self.request.id}] Archived {archived_count} applications older than {days} days")
        return {"status": "success", "archived_count": archived_count}
    except Exception as e:
        db.rollback()
        logger.error(f"[Task {self.request.id}] Error archiving stale applications: {e}", exc_info=True)
        raise
    finally:
        db.close()
