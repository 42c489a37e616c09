"""
API endpoints for candidate management.

Staff list, inspect and move candidates through the pipeline; candidates
upload their own application documents. Every response carries the
candidate's resolved pipeline state.
"""

import logging
import os
import uuid
from typing import List, Optional
from fastapi import APIRouter, UploadFile, File, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.deps import AuthContext, require_staff, require_candidate, require_roles
from app.core.storage import StorageBackend, StorageError, get_storage_backend
from app.crud import activity_log
from app.crud import candidate as candidate_crud
from app.models.candidate import Candidate
from app.models.profile import Profile, UserRole
from app.schemas.candidate import (
    ActivityLogResponse,
    CandidateResponse,
    DocumentUploadResponse,
    ManagerAssignmentRequest,
    PendingCandidateResponse,
    StatusUpdateRequest,
)
from app.schemas.pipeline import BadgeResponse, PipelineStateResponse
from app.services.pipeline import badge_for, resolve_candidate

router = APIRouter(prefix="/candidates", tags=["Candidates"])
logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {
    "resume": {".pdf", ".doc", ".docx"},
    "about_me_video": {".mp4", ".webm", ".mov"},
    "sales_pitch_video": {".mp4", ".webm", ".mov"},
}


def candidate_response(candidate: Candidate) -> CandidateResponse:
    """Serialize a candidate together with its resolved pipeline state."""
    profile = candidate.profile
    return CandidateResponse(
        id=candidate.id,
        name=profile.name if profile else None,
        email=profile.email if profile else None,
        status=candidate.status,
        current_step=candidate.current_step,
        resume=candidate.resume,
        about_me_video=candidate.about_me_video,
        sales_pitch_video=candidate.sales_pitch_video,
        assigned_manager=candidate.assigned_manager,
        phone=candidate.phone,
        location=candidate.location,
        region=candidate.region,
        created_at=candidate.created_at,
        updated_at=candidate.updated_at,
        pipeline=PipelineStateResponse.from_state(resolve_candidate(candidate)),
    )


def activity_response(entry) -> ActivityLogResponse:
    """Activity log entry, with a badge when it records a status."""
    response = ActivityLogResponse.model_validate(entry)
    status_detail = (entry.details or {}).get("status")
    if status_detail:
        badge = badge_for(status_detail)
        response.badge = BadgeResponse(label=badge.label, color_class=badge.color_class)
    return response


def get_candidate_or_404(db: Session, candidate_id: str, auth: Optional[AuthContext] = None) -> Candidate:
    """
    Load a candidate by id.

    When auth is given and the caller is a manager, candidates assigned to
    someone else are reported as missing, the same as in the list.
    """
    candidate = candidate_crud.get_by_id(db, candidate_id)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate not found")
    if auth is not None and auth.role == UserRole.MANAGER and candidate.assigned_manager != auth.user_id:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return candidate


@router.get("/", response_model=List[CandidateResponse])
def list_candidates(
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    """
    List candidates, most recently updated first.

    Args:
        status: Optional status filter (case-insensitive). `in_progress`
            excludes hired, rejected and archived candidates.
        skip: Number of records to skip (default: 0)
        limit: Maximum number of records to return (default: 100, max: 100)

    Managers only see candidates assigned to them.
    """
    if limit > 100:
        limit = 100

    manager_id = auth.user_id if auth.role == UserRole.MANAGER else None
    candidates = candidate_crud.get_multi(db, skip=skip, limit=limit, status=status, manager_id=manager_id)
    return [candidate_response(c) for c in candidates]


@router.get("/pending", response_model=List[PendingCandidateResponse])
def list_pending_candidates(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    """Candidates who registered but have not applied to any job yet."""
    return [
        PendingCandidateResponse(
            id=c.id,
            name=c.profile.name if c.profile else None,
            email=c.profile.email if c.profile else None,
            status=c.status,
            region=c.region,
            created_at=c.created_at,
        )
        for c in candidate_crud.get_pending(db)
    ]


@router.post("/me/documents/{kind}", response_model=DocumentUploadResponse)
def upload_document(
    kind: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_candidate),
    storage: StorageBackend = Depends(get_storage_backend)
):
    """
    Upload one of the caller's application documents.

    The application counts as submitted once all three documents (resume,
    about_me_video, sales_pitch_video) are present.

    Raises:
        HTTPException 400: If kind is unknown or the file type is not allowed
        HTTPException 404: If the caller has no candidate record
        HTTPException 500: If the storage backend fails
    """
    if kind not in candidate_crud.DOCUMENT_KINDS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown document kind '{kind}'. Expected one of: {', '.join(candidate_crud.DOCUMENT_KINDS)}"
        )

    file_ext = os.path.splitext(file.filename or "")[1].lower()
    allowed = ALLOWED_EXTENSIONS[kind]
    if file_ext not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type for {kind}. Allowed: {', '.join(sorted(allowed))}"
        )

    candidate = get_candidate_or_404(db, auth.user_id)

    # UUID-based naming keeps old uploads addressable and avoids path tricks
    path = f"{candidate.id}/{kind}_{uuid.uuid4().hex}{file_ext}"
    try:
        url = storage.upload_file(file.file, path)
    except StorageError as e:
        logger.error(f"Upload of {kind} for candidate {candidate.id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to store uploaded file")

    try:
        candidate = candidate_crud.set_document(db, candidate, kind, url)
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving {kind} for candidate {auth.user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to save uploaded document")
    logger.info(f"Candidate {candidate.id} uploaded {kind}")

    return DocumentUploadResponse(
        candidate_id=candidate.id,
        kind=kind,
        url=url,
        pipeline=PipelineStateResponse.from_state(resolve_candidate(candidate)),
    )


@router.get("/{candidate_id}", response_model=CandidateResponse)
def get_candidate(
    candidate_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    return candidate_response(get_candidate_or_404(db, candidate_id, auth))


@router.patch("/{candidate_id}/status", response_model=CandidateResponse)
def update_candidate_status(
    candidate_id: str,
    request: StatusUpdateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    """
    Move a candidate to a new status.

    The stored step is recomputed from the status and never moves backwards,
    except for rejection/archival (step 7) and reinstatement out of step 7.
    """
    candidate = get_candidate_or_404(db, candidate_id, auth)
    try:
        candidate = candidate_crud.update_status(
            db, candidate, request.status.value, auth.user_id, note=request.note
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating status of candidate {candidate_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update candidate status")
    return candidate_response(candidate)


@router.patch("/{candidate_id}/manager", response_model=CandidateResponse)
def assign_candidate_manager(
    candidate_id: str,
    request: ManagerAssignmentRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_roles(UserRole.HR, UserRole.DIRECTOR, UserRole.ADMIN))
):
    candidate = get_candidate_or_404(db, candidate_id, auth)

    if request.manager_id is not None:
        manager = db.query(Profile).filter(Profile.id == request.manager_id).first()
        if not manager or manager.role != UserRole.MANAGER.value:
            raise HTTPException(status_code=400, detail="Assigned manager must be an existing manager profile")

    try:
        candidate = candidate_crud.assign_manager(db, candidate, request.manager_id, auth.user_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Error assigning manager to candidate {candidate_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to assign manager")
    return candidate_response(candidate)


@router.post("/{candidate_id}/archive", response_model=CandidateResponse)
def archive_candidate(
    candidate_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    candidate = get_candidate_or_404(db, candidate_id, auth)
    try:
        candidate = candidate_crud.archive(db, candidate, auth.user_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Error archiving candidate {candidate_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to archive candidate")
    return candidate_response(candidate)


@router.delete("/{candidate_id}", status_code=204)
def delete_candidate(
    candidate_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_roles(UserRole.ADMIN, UserRole.DIRECTOR))
):
    """
    Delete a candidate with their applications and assessment results.
    """
    candidate = get_candidate_or_404(db, candidate_id, auth)
    try:
        candidate_crud.delete(db, candidate, auth.user_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting candidate {candidate_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete candidate")
    return None


@router.get("/{candidate_id}/history", response_model=List[ActivityLogResponse])
def get_candidate_history(
    candidate_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    """Latest 20 activity entries about the candidate."""
    get_candidate_or_404(db, candidate_id, auth)
    return [activity_response(entry) for entry in activity_log.get_history(db, candidate_id)]
