"""
CRUD operations for Job and JobApplication models.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.crud import activity_log
from app.crud import candidate as candidate_crud
from app.models.candidate import Candidate
from app.models.job import Job, JobApplication
from app.schemas.job import JobCreateRequest
from app.services.pipeline import CandidateStatus, APPLIED_TO_JOB_PREFIX, canonical_status

logger = logging.getLogger(__name__)

# Applications in these states are never auto-archived
ARCHIVE_EXEMPT_STATUSES = (CandidateStatus.ARCHIVED.value, CandidateStatus.HIRED.value)


class DuplicateApplicationError(Exception):
    """Raised when a candidate applies to the same job twice."""
    pass


def create(db: Session, job_data: JobCreateRequest, created_by: Optional[str] = None) -> Job:
    """
    Create a new job in the database.

    Args:
        db: Database session
        job_data: Validated job creation data
        created_by: Profile id of the creator

    Returns:
        Created Job instance with id
    """
    db_job = Job(**job_data.model_dump(), created_by=created_by)
    db.add(db_job)
    db.commit()
    db.refresh(db_job)
    return db_job


def get_by_id(db: Session, job_id: int) -> Optional[Job]:
    return db.query(Job).filter(Job.id == job_id).first()


def get_multi(db: Session, skip: int = 0, limit: int = 100, public_only: bool = True) -> List[Job]:
    """Non-archived jobs, newest first."""
    query = db.query(Job).filter(Job.archived.is_(False))
    if public_only:
        query = query.filter(Job.is_public.is_(True))
    return query.order_by(Job.created_at.desc(), Job.id.desc()).offset(skip).limit(limit).all()


def get_application(db: Session, candidate_id: str, job_id: int) -> Optional[JobApplication]:
    return (
        db.query(JobApplication)
        .filter(JobApplication.candidate_id == candidate_id, JobApplication.job_id == job_id)
        .first()
    )


def apply(db: Session, job: Job, candidate: Candidate) -> JobApplication:
    """
    Record a candidate's application to a job.

    A candidate still at profile_created moves to applied. The activity entry
    carries the "Applied to job: <title>" display status.

    Raises:
        DuplicateApplicationError: If the candidate already applied to this job
    """
    if get_application(db, candidate.id, job.id):
        raise DuplicateApplicationError(f"Candidate {candidate.id} already applied to job {job.id}")

    application = JobApplication(
        candidate_id=candidate.id,
        job_id=job.id,
        status=CandidateStatus.APPLIED.value,
    )
    db.add(application)

    display_status = f"{APPLIED_TO_JOB_PREFIX.capitalize()} {job.title}"
    activity_log.add(db, candidate.id, "applied", "job_applications", candidate.id, {
        "status": display_status,
        "job_id": job.id,
    })

    if canonical_status(candidate.status) == CandidateStatus.PROFILE_CREATED:
        # update_status commits the application and log entry with it
        candidate_crud.update_status(db, candidate, CandidateStatus.APPLIED.value, candidate.id, action="status_change")
    else:
        db.commit()

    db.refresh(application)
    logger.info(f"Candidate {candidate.id} applied to job {job.id}")
    return application


def get_applications(db: Session, job_id: int) -> List[JobApplication]:
    return (
        db.query(JobApplication)
        .filter(JobApplication.job_id == job_id)
        .order_by(JobApplication.created_at.desc(), JobApplication.id.desc())
        .all()
    )


def archive_stale_applications(db: Session, days: int, now: Optional[datetime] = None) -> int:
    """
    Archive applications older than `days` that are not archived or hired.

    Args:
        db: Database session
        days: Age threshold in days
        now: Reference time (defaults to the current UTC time)

    Returns:
        Number of applications archived
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=days)

    stale = (
        db.query(JobApplication)
        .filter(
            JobApplication.created_at < cutoff,
            func.lower(JobApplication.status).notin_(ARCHIVE_EXEMPT_STATUSES),
        )
        .all()
    )

    for application in stale:
        application.status = CandidateStatus.ARCHIVED.value

    db.commit()
    return len(stale)


def withdraw(db: Session, application: JobApplication) -> None:
    """
    Delete a candidate's own application and log the withdrawal.

    The candidate's pipeline status is left as it is; staff decide what a
    withdrawal means for an application already under review.
    """
    candidate_id = application.candidate_id
    job_id = application.job_id
    job_title = application.job.title if application.job else None

    activity_log.add(db, candidate_id, "withdraw_application", "job_applications", candidate_id, {
        "job_id": job_id,
        "job_title": job_title,
    })
    db.delete(application)
    db.commit()
    logger.info(f"Candidate {candidate_id} withdrew from job {job_id}")
