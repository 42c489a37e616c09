"""
CRUD operations for Candidate model.

Every status or step write goes through here so that:
- the stored step is recomputed with pipeline.advance_step (never regresses)
- the change is recorded in the activity log
- listeners on the row's change channel are notified after commit
"""

import logging
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.crud import activity_log
from app.models.candidate import Candidate
from app.models.job import JobApplication
from app.models.profile import Profile
from app.services import pipeline
from app.services.pipeline import CandidateStatus
from app.services import realtime

logger = logging.getLogger(__name__)

DOCUMENT_KINDS = ("resume", "about_me_video", "sales_pitch_video")

# Status filter value meaning "still in the pipeline"
IN_PROGRESS_FILTER = "in_progress"


def candidate_row(candidate: Candidate) -> Dict[str, Any]:
    """JSON-safe snapshot of a candidate row, as published on the change feed."""
    return {
        "id": candidate.id,
        "status": candidate.status,
        "current_step": candidate.current_step,
        "resume": candidate.resume,
        "about_me_video": candidate.about_me_video,
        "sales_pitch_video": candidate.sales_pitch_video,
        "assigned_manager": candidate.assigned_manager,
        "location": candidate.location,
        "phone": candidate.phone,
        "region": candidate.region,
        "updated_at": candidate.updated_at.isoformat() if candidate.updated_at else None,
    }


def _publish(event: str, candidate: Candidate) -> None:
    realtime.change_feed.publish("candidates", event, candidate_row(candidate))


def get_by_id(db: Session, candidate_id: str) -> Optional[Candidate]:
    return db.query(Candidate).filter(Candidate.id == candidate_id).first()


def get_multi(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    status: Optional[str] = None,
    manager_id: Optional[str] = None,
) -> List[Candidate]:
    """
    Retrieve candidates, most recently updated first.

    Args:
        db: Database session
        skip: Number of records to skip (offset)
        limit: Maximum number of records to return
        status: Optional status filter (case-insensitive). "in_progress"
            excludes hired, rejected and archived candidates.
        manager_id: Only candidates assigned to this manager

    Returns:
        List of Candidate instances
    """
    query = db.query(Candidate)

    if status:
        normalized = status.strip().lower()
        if normalized == IN_PROGRESS_FILTER:
            terminal = [s.value for s in pipeline.TERMINAL_STATUSES]
            query = query.filter(func.lower(Candidate.status).notin_(terminal))
        else:
            query = query.filter(func.lower(Candidate.status) == normalized)

    if manager_id:
        query = query.filter(Candidate.assigned_manager == manager_id)

    return query.order_by(Candidate.updated_at.desc()).offset(skip).limit(limit).all()


def get_pending(db: Session) -> List[Candidate]:
    """Candidates still at profile_created or without any job application."""
    has_application = db.query(JobApplication.id).filter(JobApplication.candidate_id == Candidate.id).exists()
    return (
        db.query(Candidate)
        .filter(
            (func.lower(Candidate.status) == CandidateStatus.PROFILE_CREATED.value) | ~has_application
        )
        .order_by(Candidate.created_at.desc())
        .all()
    )


def create_for_profile(
    db: Session,
    profile: Profile,
    phone: Optional[str] = None,
    location: Optional[str] = None,
    region: Optional[str] = None,
) -> Candidate:
    """Create the candidate row that accompanies a newly registered profile."""
    candidate = Candidate(
        id=profile.id,
        status=CandidateStatus.PROFILE_CREATED.value,
        current_step=pipeline.PROFILE_STEP,
        phone=phone,
        location=location,
        region=region,
    )
    db.add(candidate)
    db.commit()
    db.refresh(candidate)
    _publish("INSERT", candidate)
    return candidate


def update_status(
    db: Session,
    candidate: Candidate,
    status: str,
    actor_id: str,
    action: str = "status_change",
    note: Optional[str] = None,
) -> Candidate:
    """
    Change a candidate's status and reconcile the stored step.

    Args:
        db: Database session
        candidate: Candidate to update
        status: New status string
        actor_id: Profile id of whoever made the change
        action: Activity log action name
        note: Optional free-text note kept in the log details

    Returns:
        Updated Candidate instance
    """
    previous_status = candidate.status
    previous_step = candidate.current_step

    candidate.status = status
    candidate.current_step = pipeline.advance_step(previous_step, status)

    details = {
        "status": status,
        "previous_status": previous_status,
        "step": candidate.current_step,
        "previous_step": previous_step,
    }
    if note:
        details["note"] = note
    activity_log.add(db, actor_id, action, "candidates", candidate.id, details)

    db.commit()
    db.refresh(candidate)

    logger.info(
        f"Candidate {candidate.id} status {previous_status} -> {status} "
        f"(step {previous_step} -> {candidate.current_step}) by {actor_id}"
    )
    _publish("UPDATE", candidate)
    return candidate


def archive(db: Session, candidate: Candidate, actor_id: str) -> Candidate:
    return update_status(db, candidate, CandidateStatus.ARCHIVED.value, actor_id, action="archive_candidate")


def assign_manager(db: Session, candidate: Candidate, manager_id: Optional[str], actor_id: str) -> Candidate:
    candidate.assigned_manager = manager_id
    activity_log.add(db, actor_id, "assign_manager", "candidates", candidate.id, {"manager_id": manager_id})
    db.commit()
    db.refresh(candidate)
    _publish("UPDATE", candidate)
    return candidate


def set_document(db: Session, candidate: Candidate, kind: str, url: str) -> Candidate:
    """
    Store the public URL of an uploaded document.

    Raises:
        ValueError: If kind is not one of DOCUMENT_KINDS
    """
    if kind not in DOCUMENT_KINDS:
        raise ValueError(f"Unknown document kind: {kind}")

    setattr(candidate, kind, url)
    activity_log.add(db, candidate.id, "upload_document", "candidates", candidate.id, {"kind": kind})
    db.commit()
    db.refresh(candidate)
    _publish("UPDATE", candidate)
    return candidate


def set_step(db: Session, candidate: Candidate, step: int) -> Candidate:
    """Store a step computed elsewhere (training quiz advancement)."""
    if step == candidate.current_step:
        return candidate
    candidate.current_step = step
    db.commit()
    db.refresh(candidate)
    _publish("UPDATE", candidate)
    return candidate


def delete(db: Session, candidate: Candidate, actor_id: str) -> None:
    """
    Remove a candidate together with their applications and assessment results.

    The profile is left alone; account removal is a separate admin operation.
    """
    snapshot = candidate_row(candidate)
    activity_log.add(db, actor_id, "delete_candidate", "candidates", candidate.id, None)
    db.delete(candidate)
    db.commit()
    logger.info(f"Deleted candidate {snapshot['id']} by {actor_id}")
    realtime.change_feed.publish("candidates", "DELETE", snapshot, old=snapshot)
