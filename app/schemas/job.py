from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class JobCreateRequest(BaseModel):
    """Schema for creating a new job"""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=10)
    department: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    salary_range: Optional[str] = None
    is_public: bool = True


class JobResponse(BaseModel):
    """Schema for job response"""
    id: int
    title: str
    description: str
    department: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    salary_range: Optional[str] = None
    status: str
    is_public: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # Allows conversion from SQLAlchemy models


class JobApplicationResponse(BaseModel):
    id: int
    job_id: int
    candidate_id: str
    status: str
    job_title: Optional[str] = None
    candidate_name: Optional[str] = None
    created_at: Optional[datetime] = None
