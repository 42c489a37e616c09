"""
Celery application configuration.

Redis is both the message broker and result backend. Celery beat runs the
periodic pipeline maintenance tasks listed in beat_schedule.
"""

from celery import Celery
from celery.schedules import crontab
from app.core.config import settings

# Create Celery instance
celery_app = Celery(
    "hiring_pipeline_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL
)

# Configure Celery
celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task behavior
    task_track_started=True,
    task_time_limit=300,  # 5 minutes max per task
    task_soft_time_limit=240,

    # Result backend
    result_expires=3600,  # Results expire after 1 hour

    # Worker behavior
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=50,

    beat_schedule={
        "archive-stale-applications": {
            "task": "app.tasks.archive_tasks.archive_stale_applications_task",
            "schedule": crontab(hour=2, minute=0),  # 2 AM UTC daily
        },
    },
)

# Auto-discover tasks from app.tasks module
celery_app.autodiscover_tasks(['app'])
