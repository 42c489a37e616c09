import logging
from typing import List
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import AuthContext, require_candidate, require_roles, require_staff
from app.crud import candidate as candidate_crud
from app.crud import job as job_crud
from app.models.profile import UserRole
from app.schemas.job import JobApplicationResponse, JobCreateRequest, JobResponse

router = APIRouter(prefix="/jobs", tags=["Jobs"])
logger = logging.getLogger(__name__)

require_job_editor = require_roles(UserRole.HR, UserRole.DIRECTOR, UserRole.ADMIN)


def application_response(application) -> JobApplicationResponse:
    profile = application.candidate.profile if application.candidate else None
    return JobApplicationResponse(
        id=application.id,
        job_id=application.job_id,
        candidate_id=application.candidate_id,
        status=application.status,
        job_title=application.job.title if application.job else None,
        candidate_name=profile.name if profile else None,
        created_at=application.created_at,
    )


@router.post("/", status_code=201, response_model=JobResponse)
def create_job(
    request: JobCreateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_job_editor)
):
    """
    Create a new job opening.
    """
    try:
        new_job = job_crud.create(db, request, created_by=auth.user_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating job: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create job: {str(e)}")

    logger.info(f"Created job {new_job.id}: {new_job.title}")
    return new_job


@router.get("/", response_model=List[JobResponse])
def list_jobs(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """
    List public, non-archived jobs with pagination.

    Args:
        skip: Number of records to skip (default: 0)
        limit: Maximum number of records to return (default: 100, max: 100)
    """
    if limit > 100:
        limit = 100

    return job_crud.get_multi(db, skip=skip, limit=limit)


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: int, db: Session = Depends(get_db)):
    job = job_crud.get_by_id(db, job_id)

    if not job or job.archived:
        raise HTTPException(status_code=404, detail="Job not found")

    return job


@router.post("/{job_id}/apply", status_code=201, response_model=JobApplicationResponse)
def apply_to_job(
    job_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_candidate)
):
    """
    Apply the calling candidate to a job.

    A candidate who has only created a profile moves to `applied`.

    Raises:
        HTTPException 404: If the job or the caller's candidate record is missing
        HTTPException 409: If the candidate already applied to this job
    """
    job = job_crud.get_by_id(db, job_id)
    if not job or job.archived:
        raise HTTPException(status_code=404, detail="Job not found")

    candidate = candidate_crud.get_by_id(db, auth.user_id)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate record not found")

    try:
        application = job_crud.apply(db, job, candidate)
    except job_crud.DuplicateApplicationError:
        raise HTTPException(status_code=409, detail="You have already applied to this job")

    return application_response(application)


@router.delete("/{job_id}/apply", status_code=204)
def withdraw_application(
    job_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_candidate)
):
    """
    Withdraw the calling candidate's application to a job.

    Raises:
        HTTPException 404: If the candidate has no application to this job
    """
    application = job_crud.get_application(db, auth.user_id, job_id)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")

    try:
        job_crud.withdraw(db, application)
    except Exception as e:
        db.rollback()
        logger.error(f"Error withdrawing application of {auth.user_id} to job {job_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to withdraw application")
    return None


@router.get("/{job_id}/applications", response_model=List[JobApplicationResponse])
def list_job_applications(
    job_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    job = job_crud.get_by_id(db, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    return [application_response(a) for a in job_crud.get_applications(db, job_id)]
