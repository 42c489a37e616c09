"""
Pydantic schemas for Candidate API requests/responses.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator
from app.schemas.pipeline import PipelineStateResponse, BadgeResponse, WizardStep
from app.schemas.assessment import AssessmentResultResponse
from app.services.pipeline import CandidateStatus


class CandidateBase(BaseModel):
    """Base candidate schema with common fields."""
    phone: Optional[str] = None
    location: Optional[str] = None
    region: Optional[str] = None


class CandidateResponse(CandidateBase):
    """Candidate row plus its resolved pipeline state."""
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    status: str
    current_step: int
    resume: Optional[str] = None
    about_me_video: Optional[str] = None
    sales_pitch_video: Optional[str] = None
    assigned_manager: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pipeline: PipelineStateResponse


class PendingCandidateResponse(BaseModel):
    """Candidate who has a profile but no job application yet."""
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    status: str
    region: Optional[str] = None
    created_at: Optional[datetime] = None


class StatusUpdateRequest(BaseModel):
    """Staff status change. Only canonical statuses can be written."""
    status: CandidateStatus
    note: Optional[str] = Field(None, max_length=1000)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class ManagerAssignmentRequest(BaseModel):
    manager_id: Optional[str] = Field(None, description="Manager profile id; null to unassign")


class DocumentUploadResponse(BaseModel):
    candidate_id: str
    kind: str
    url: str
    pipeline: PipelineStateResponse


class ActivityLogResponse(BaseModel):
    id: int
    user_id: str
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    badge: Optional[BadgeResponse] = Field(None, description="Present when the entry records a status")

    class Config:
        from_attributes = True


class DashboardResponse(BaseModel):
    """Everything the candidate dashboard renders in one payload."""
    candidate: CandidateResponse
    assessment_results: List[AssessmentResultResponse]
    notifications: List[ActivityLogResponse]
    wizard: List[WizardStep]
