"""
API endpoints for training.

Candidates list modules, record watched videos and take module quizzes.
HR, directors and admins manage the module and video catalogue under
`/training/content`.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.deps import AuthContext, require_candidate, require_roles
from app.crud import assessment as assessment_crud
from app.crud import candidate as candidate_crud
from app.crud import training as training_crud
from app.models.candidate import Candidate
from app.models.profile import UserRole
from app.schemas.training import (
    ModuleQuizResponse,
    ModuleQuizSubmitRequest,
    TrainingModuleCreateRequest,
    TrainingModuleDetailResponse,
    TrainingModuleResponse,
    TrainingModuleUpdateRequest,
    VideoCreateRequest,
    VideoDetailResponse,
    VideoResponse,
    VideoUpdateRequest,
)
from app.services.pipeline import resolve_candidate
from app.services.scoring import is_passing, step_after_quiz

router = APIRouter(prefix="/training", tags=["Training"])
logger = logging.getLogger(__name__)

require_content_editor = require_roles(UserRole.HR, UserRole.DIRECTOR, UserRole.ADMIN)


def _get_trainee(db: Session, auth: AuthContext) -> Candidate:
    """
    Load the caller's candidate record and check they may access training.

    Raises:
        HTTPException 404: If the caller has no candidate record
        HTTPException 403: If the application is incomplete or the candidate
            is not in the training window
    """
    candidate = candidate_crud.get_by_id(db, auth.user_id)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate record not found")

    if not resolve_candidate(candidate).can_access_training:
        raise HTTPException(
            status_code=403,
            detail="Training is available once your application is submitted and approved"
        )
    return candidate


def _module_response(progress: training_crud.ModuleProgress) -> TrainingModuleResponse:
    module = progress.module
    return TrainingModuleResponse(
        id=module.id,
        title=module.title,
        description=module.description,
        module=module.module,
        progress=progress.state.progress,
        status=progress.state.status,
        locked=progress.state.locked,
        total_videos=len(progress.videos),
        watched_videos=len(progress.watched_ids),
        quiz_id=module.quiz_id,
        quiz_completed=progress.quiz_completed,
        videos=[
            VideoResponse(
                id=v.id,
                title=v.title,
                url=v.url,
                duration=v.duration,
                watched=v.id in progress.watched_ids,
            )
            for v in progress.videos
        ],
    )


@router.get("/modules", response_model=List[TrainingModuleResponse])
def list_training_modules(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_candidate)
):
    """
    Training modules in order, with the caller's progress.

    Each module unlocks only when every module before it is complete.
    """
    candidate = _get_trainee(db, auth)
    return [_module_response(p) for p in training_crud.get_progress(db, candidate.id)]


@router.post("/videos/{video_id}/complete", response_model=VideoResponse)
def complete_video(
    video_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_candidate)
):
    """Mark a video as watched. Repeating the call is harmless."""
    candidate = _get_trainee(db, auth)

    video = training_crud.get_video(db, video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")

    training_crud.mark_video_watched(db, candidate.id, video.id)
    return VideoResponse(id=video.id, title=video.title, url=video.url, duration=video.duration, watched=True)


@router.post("/modules/{module_id}/quiz", response_model=ModuleQuizResponse)
def submit_module_quiz(
    module_id: int,
    request: ModuleQuizSubmitRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_candidate)
):
    """
    Score a module quiz and advance the candidate's step on a pass.

    The step only ever moves forward: passing sets it to the later of the
    current step and the step that follows the module.

    Raises:
        HTTPException 400: If the module has no quiz
        HTTPException 403: If training is not accessible or the module is locked
        HTTPException 404: If the module does not exist
    """
    candidate = _get_trainee(db, auth)

    progress = next((p for p in training_crud.get_progress(db, candidate.id) if p.module.id == module_id), None)
    if progress is None:
        raise HTTPException(status_code=404, detail="Training module not found")
    if progress.state.locked:
        raise HTTPException(status_code=403, detail="Complete the previous modules first")

    module = progress.module
    if module.quiz_id is None or module.quiz is None:
        raise HTTPException(status_code=400, detail="This module has no quiz")

    result = assessment_crud.submit(db, candidate.id, module.quiz, request.answers, request.answer_timings)
    passed = is_passing(result.score)

    new_step = step_after_quiz(candidate.current_step, module.module, result.score)
    candidate = candidate_crud.set_step(db, candidate, new_step)

    logger.info(
        f"Candidate {candidate.id} scored {result.score}% on {module.module} quiz; step {candidate.current_step}"
    )

    if passed:
        message = f"Quiz passed with {result.score}%"
    else:
        message = f"Score of {result.score}% is below the passing mark. Review the videos and try again."

    return ModuleQuizResponse(
        result_id=result.id,
        score=result.score,
        passed=passed,
        current_step=candidate.current_step,
        message=message,
    )


def _check_quiz(db: Session, quiz_id: Optional[int]) -> None:
    if quiz_id is not None and not assessment_crud.get_by_id(db, quiz_id):
        raise HTTPException(status_code=400, detail="Quiz assessment not found")


def _get_module_for_edit_or_404(db: Session, module_id: int):
    module = training_crud.get_module_for_edit(db, module_id)
    if not module:
        raise HTTPException(status_code=404, detail="Training module not found")
    return module


@router.get("/content/modules", response_model=List[TrainingModuleDetailResponse])
def list_training_content(
    include_archived: bool = False,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_content_editor)
):
    return training_crud.get_all_modules(db, include_archived=include_archived)


@router.post("/content/modules", status_code=201, response_model=TrainingModuleDetailResponse)
def create_training_module(
    request: TrainingModuleCreateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_content_editor)
):
    """
    Create a training module, optionally with its videos.

    Raises:
        HTTPException 400: If quiz_id does not name an assessment
    """
    _check_quiz(db, request.quiz_id)
    try:
        module = training_crud.create_module(db, request)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating training module: {e}")
        raise HTTPException(status_code=500, detail="Failed to create training module")

    logger.info(f"Created training module {module.id}: {module.title} by {auth.user_id}")
    return module


@router.patch("/content/modules/{module_id}", response_model=TrainingModuleDetailResponse)
def update_training_module(
    module_id: int,
    request: TrainingModuleUpdateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_content_editor)
):
    module = _get_module_for_edit_or_404(db, module_id)

    changes = request.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No update data provided")
    if "quiz_id" in changes:
        _check_quiz(db, changes["quiz_id"])

    try:
        return training_crud.update_module(db, module, changes)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating training module {module_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update training module")


@router.delete("/content/modules/{module_id}", status_code=204)
def archive_training_module(
    module_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_content_editor)
):
    """Archive a module. Candidates stop seeing it; their progress is kept."""
    module = _get_module_for_edit_or_404(db, module_id)
    try:
        training_crud.archive_module(db, module)
    except Exception as e:
        db.rollback()
        logger.error(f"Error archiving training module {module_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to archive training module")

    logger.info(f"Archived training module {module_id} by {auth.user_id}")
    return None


@router.post("/content/modules/{module_id}/videos", status_code=201, response_model=VideoDetailResponse)
def add_training_video(
    module_id: int,
    request: VideoCreateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_content_editor)
):
    module = _get_module_for_edit_or_404(db, module_id)
    try:
        return training_crud.add_video(db, module, request)
    except Exception as e:
        db.rollback()
        logger.error(f"Error adding video to training module {module_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to add video")


@router.patch("/content/videos/{video_id}", response_model=VideoDetailResponse)
def update_training_video(
    video_id: int,
    request: VideoUpdateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_content_editor)
):
    video = training_crud.get_video_for_edit(db, video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")

    changes = request.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No update data provided")

    try:
        return training_crud.update_video(db, video, changes)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating video {video_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update video")


@router.delete("/content/videos/{video_id}", status_code=204)
def archive_training_video(
    video_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_content_editor)
):
    video = training_crud.get_video_for_edit(db, video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    try:
        training_crud.archive_video(db, video)
    except Exception as e:
        db.rollback()
        logger.error(f"Error archiving video {video_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to archive video")
    return None
