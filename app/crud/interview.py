"""
CRUD operations for Interview model.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from app.crud import activity_log
from app.models.candidate import Candidate
from app.models.interview import Interview, InterviewStatus

logger = logging.getLogger(__name__)


def create(
    db: Session,
    candidate: Candidate,
    manager_id: str,
    scheduled_at: datetime,
    actor_id: str,
    notes: Optional[str] = None,
) -> Interview:
    """
    Schedule an interview and log it against the candidate.

    Args:
        db: Database session
        candidate: Candidate being interviewed
        manager_id: Profile id of the interviewing manager
        scheduled_at: Interview date and time
        actor_id: Profile id of whoever scheduled it
        notes: Optional notes for the interviewer

    Returns:
        Created Interview instance with id
    """
    interview = Interview(
        candidate_id=candidate.id,
        manager_id=manager_id,
        scheduled_at=scheduled_at,
        status=InterviewStatus.SCHEDULED.value,
        notes=notes,
    )
    db.add(interview)
    activity_log.add(db, actor_id, "schedule_interview", "interviews", candidate.id, {
        "manager_id": manager_id,
        "scheduled_at": scheduled_at.isoformat(),
    })
    db.commit()
    db.refresh(interview)

    logger.info(f"Interview {interview.id} scheduled for candidate {candidate.id} with manager {manager_id}")
    return interview


def get_by_id(db: Session, interview_id: int) -> Optional[Interview]:
    return db.query(Interview).filter(Interview.id == interview_id).first()


def get_multi(
    db: Session,
    manager_id: Optional[str] = None,
    candidate_id: Optional[str] = None,
    include_archived: bool = False,
) -> List[Interview]:
    """Interviews soonest first, optionally limited to one manager or candidate."""
    query = db.query(Interview)
    if manager_id:
        query = query.filter(Interview.manager_id == manager_id)
    if candidate_id:
        query = query.filter(Interview.candidate_id == candidate_id)
    if not include_archived:
        query = query.filter(Interview.archived.is_(False))
    return query.order_by(Interview.scheduled_at.asc(), Interview.id.asc()).all()


def update(db: Session, interview: Interview, changes: Dict[str, Any], actor_id: str) -> Interview:
    """
    Apply a partial update (reschedule, status, notes, feedback, decision).

    A status change is recorded in the activity log.
    """
    previous_status = interview.status
    for field, value in changes.items():
        if isinstance(value, InterviewStatus):
            value = value.value
        setattr(interview, field, value)

    if interview.status != previous_status:
        activity_log.add(db, actor_id, "interview_status", "interviews", interview.candidate_id, {
            "interview_id": interview.id,
            "interview_status": interview.status,
            "previous_status": previous_status,
        })

    db.commit()
    db.refresh(interview)
    return interview


def cancel(db: Session, interview: Interview, actor_id: str) -> Interview:
    return update(db, interview, {"status": InterviewStatus.CANCELLED.value}, actor_id)


def archive(db: Session, interview: Interview) -> Interview:
    interview.archived = True
    db.commit()
    db.refresh(interview)
    return interview
