"""
CRUD operations for training modules and video progress.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set
from sqlalchemy.orm import Session
from app.crud import assessment as assessment_crud
from app.models.training import TrainingModule, Video, VideoProgress
from app.schemas.training import TrainingModuleCreateRequest, VideoCreateRequest
from app.services.pipeline import ModuleInput, ModuleState, resolve_training_module_status


@dataclass
class ModuleProgress:
    module: TrainingModule
    videos: List[Video]
    watched_ids: Set[int]
    quiz_completed: bool
    state: ModuleState


def get_modules(db: Session) -> List[TrainingModule]:
    """Active modules in unlock order."""
    return (
        db.query(TrainingModule)
        .filter(TrainingModule.archived.is_(False))
        .order_by(TrainingModule.order_number.asc(), TrainingModule.id.asc())
        .all()
    )


def get_module(db: Session, module_id: int) -> Optional[TrainingModule]:
    return (
        db.query(TrainingModule)
        .filter(TrainingModule.id == module_id, TrainingModule.archived.is_(False))
        .first()
    )


def get_video(db: Session, video_id: int) -> Optional[Video]:
    return db.query(Video).filter(Video.id == video_id, Video.archived.is_(False)).first()


def watched_video_ids(db: Session, user_id: str) -> Set[int]:
    rows = (
        db.query(VideoProgress.video_id)
        .filter(VideoProgress.user_id == user_id, VideoProgress.completed.is_(True))
        .all()
    )
    return {row[0] for row in rows}


def mark_video_watched(db: Session, user_id: str, video_id: int) -> VideoProgress:
    """Record a watched video. Safe to call repeatedly."""
    progress = (
        db.query(VideoProgress)
        .filter(VideoProgress.user_id == user_id, VideoProgress.video_id == video_id)
        .first()
    )
    if progress is None:
        progress = VideoProgress(user_id=user_id, video_id=video_id, completed=True)
        db.add(progress)
    else:
        progress.completed = True
    db.commit()
    db.refresh(progress)
    return progress


def get_progress(db: Session, user_id: str) -> List[ModuleProgress]:
    """
    Progress and lock state of every module for one candidate.

    A module without a quiz counts its quiz part as done once all of its
    videos are watched.
    """
    modules = get_modules(db)
    watched = watched_video_ids(db, user_id)
    passed = assessment_crud.passed_assessment_ids(db, user_id, [m.quiz_id for m in modules])

    collected = []
    inputs = []
    for module in modules:
        videos = [v for v in module.videos if not v.archived]
        module_watched = {v.id for v in videos if v.id in watched}
        if module.quiz_id is not None:
            quiz_completed = module.quiz_id in passed
        else:
            quiz_completed = len(module_watched) == len(videos)
        collected.append((module, videos, module_watched, quiz_completed))
        inputs.append(ModuleInput(
            total_videos=len(videos),
            watched_videos=len(module_watched),
            quiz_completed=quiz_completed,
        ))

    states = resolve_training_module_status(inputs)
    return [
        ModuleProgress(module=m, videos=v, watched_ids=w, quiz_completed=q, state=s)
        for (m, v, w, q), s in zip(collected, states)
    ]


def get_all_modules(db: Session, include_archived: bool = False) -> List[TrainingModule]:
    """Modules in unlock order for staff editing."""
    query = db.query(TrainingModule)
    if not include_archived:
        query = query.filter(TrainingModule.archived.is_(False))
    return query.order_by(TrainingModule.order_number.asc(), TrainingModule.id.asc()).all()


def get_module_for_edit(db: Session, module_id: int) -> Optional[TrainingModule]:
    return db.query(TrainingModule).filter(TrainingModule.id == module_id).first()


def get_video_for_edit(db: Session, video_id: int) -> Optional[Video]:
    return db.query(Video).filter(Video.id == video_id).first()


def create_module(db: Session, module_data: TrainingModuleCreateRequest) -> TrainingModule:
    """
    Create a training module together with its initial videos.

    Args:
        db: Database session
        module_data: Validated module creation data

    Returns:
        Created TrainingModule instance with id
    """
    module = TrainingModule(**module_data.model_dump(exclude={"videos"}))
    module.videos = [Video(**video.model_dump()) for video in module_data.videos]
    db.add(module)
    db.commit()
    db.refresh(module)
    return module


def update_module(db: Session, module: TrainingModule, changes: Dict[str, Any]) -> TrainingModule:
    for field, value in changes.items():
        setattr(module, field, value)
    db.commit()
    db.refresh(module)
    return module


def archive_module(db: Session, module: TrainingModule) -> TrainingModule:
    """
    Hide a module from candidates.

    Progress rows are kept, so restoring the module restores its progress.
    """
    return update_module(db, module, {"archived": True})


def add_video(db: Session, module: TrainingModule, video_data: VideoCreateRequest) -> Video:
    video = Video(module_id=module.id, **video_data.model_dump())
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def update_video(db: Session, video: Video, changes: Dict[str, Any]) -> Video:
    for field, value in changes.items():
        setattr(video, field, value)
    db.commit()
    db.refresh(video)
    return video


def archive_video(db: Session, video: Video) -> Video:
    return update_video(db, video, {"archived": True})
