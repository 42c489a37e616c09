"""
API endpoints for interview scheduling.

Managers schedule and run interviews with the candidates assigned to them;
HR, directors and admins schedule on a manager's behalf. Candidates see
their own upcoming interviews.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.api.endpoints.candidates import get_candidate_or_404
from app.core.database import get_db
from app.core.deps import AuthContext, require_candidate, require_staff
from app.crud import interview as interview_crud
from app.models.interview import Interview
from app.models.profile import Profile, UserRole
from app.schemas.interview import InterviewCreateRequest, InterviewResponse, InterviewUpdateRequest

router = APIRouter(prefix="/interviews", tags=["Interviews"])
logger = logging.getLogger(__name__)


def interview_response(interview: Interview) -> InterviewResponse:
    candidate_profile = interview.candidate.profile if interview.candidate else None
    return InterviewResponse(
        id=interview.id,
        candidate_id=interview.candidate_id,
        manager_id=interview.manager_id,
        scheduled_at=interview.scheduled_at,
        status=interview.status,
        notes=interview.notes,
        feedback=interview.feedback,
        decision=interview.decision,
        archived=interview.archived,
        candidate_name=candidate_profile.name if candidate_profile else None,
        manager_name=interview.manager.name if interview.manager else None,
        created_at=interview.created_at,
        updated_at=interview.updated_at,
    )


def _get_interview_or_404(db: Session, interview_id: int, auth: AuthContext) -> Interview:
    """Managers only reach the interviews they run."""
    interview = interview_crud.get_by_id(db, interview_id)
    if not interview:
        raise HTTPException(status_code=404, detail="Interview not found")
    if auth.role == UserRole.MANAGER and interview.manager_id != auth.user_id:
        raise HTTPException(status_code=404, detail="Interview not found")
    return interview


@router.post("/", status_code=201, response_model=InterviewResponse)
def schedule_interview(
    request: InterviewCreateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    """
    Schedule an interview with a candidate.

    Raises:
        HTTPException 400: If the interviewer is missing or not a manager
        HTTPException 404: If the candidate does not exist or, for managers,
            is not assigned to them
    """
    candidate = get_candidate_or_404(db, request.candidate_id, auth)

    if auth.role == UserRole.MANAGER:
        if request.manager_id not in (None, auth.user_id):
            raise HTTPException(status_code=400, detail="Managers can only schedule their own interviews")
        manager_id = auth.user_id
    else:
        if request.manager_id is None:
            raise HTTPException(status_code=400, detail="manager_id is required")
        manager = db.query(Profile).filter(Profile.id == request.manager_id).first()
        if not manager or manager.role != UserRole.MANAGER.value:
            raise HTTPException(status_code=400, detail="Interviewer must be an existing manager profile")
        manager_id = manager.id

    try:
        interview = interview_crud.create(
            db, candidate, manager_id, request.scheduled_at, auth.user_id, notes=request.notes
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Error scheduling interview for candidate {candidate.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to schedule interview")

    return interview_response(interview)


@router.get("/", response_model=List[InterviewResponse])
def list_interviews(
    candidate_id: Optional[str] = None,
    include_archived: bool = False,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    """
    List interviews, soonest first.

    Managers only see the interviews they run.
    """
    manager_id = auth.user_id if auth.role == UserRole.MANAGER else None
    interviews = interview_crud.get_multi(
        db, manager_id=manager_id, candidate_id=candidate_id, include_archived=include_archived
    )
    return [interview_response(i) for i in interviews]


@router.get("/me", response_model=List[InterviewResponse])
def list_my_interviews(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_candidate)
):
    return [interview_response(i) for i in interview_crud.get_multi(db, candidate_id=auth.user_id)]


@router.patch("/{interview_id}", response_model=InterviewResponse)
def update_interview(
    interview_id: int,
    request: InterviewUpdateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    """
    Reschedule an interview or record its outcome.

    Raises:
        HTTPException 400: If no fields were sent
        HTTPException 404: If the interview does not exist
    """
    interview = _get_interview_or_404(db, interview_id, auth)

    changes = request.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No update data provided")

    try:
        interview = interview_crud.update(db, interview, changes, auth.user_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating interview {interview_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update interview")

    return interview_response(interview)


@router.post("/{interview_id}/cancel", response_model=InterviewResponse)
def cancel_interview(
    interview_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    interview = _get_interview_or_404(db, interview_id, auth)
    try:
        interview = interview_crud.cancel(db, interview, auth.user_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Error cancelling interview {interview_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to cancel interview")
    return interview_response(interview)


@router.post("/{interview_id}/archive", response_model=InterviewResponse)
def archive_interview(
    interview_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    """Hide an interview from the default list. Archived interviews stay readable."""
    interview = _get_interview_or_404(db, interview_id, auth)
    try:
        interview = interview_crud.archive(db, interview)
    except Exception as e:
        db.rollback()
        logger.error(f"Error archiving interview {interview_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to archive interview")
    return interview_response(interview)
