"""
CRUD operations for the activity log.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.models.activity_log import ActivityLog


def add(
    db: Session,
    user_id: str,
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ActivityLog:
    """
    Stage an activity log entry in the current transaction.

    The caller commits, so the entry lands atomically with the change it
    describes.
    """
    entry = ActivityLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )
    db.add(entry)
    return entry


def get_history(db: Session, entity_id: str, limit: int = 20) -> List[ActivityLog]:
    """Latest entries about one entity, newest first."""
    return (
        db.query(ActivityLog)
        .filter(ActivityLog.entity_id == entity_id)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )


def get_notifications(db: Session, user_id: str, limit: int = 10) -> List[ActivityLog]:
    """Entries a user performed or that concern them, newest first."""
    return (
        db.query(ActivityLog)
        .filter(or_(ActivityLog.user_id == user_id, ActivityLog.entity_id == user_id))
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
