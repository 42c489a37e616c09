"""
Pydantic schemas for assessments, questions and results.
"""

from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class QuestionCreate(BaseModel):
    text: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0)
    time_limit: Optional[int] = Field(None, gt=0)

    @field_validator("options")
    @classmethod
    def options_not_blank(cls, v: List[str]) -> List[str]:
        """Every option must have text; a blank option is an incomplete question."""
        if any(not option.strip() for option in v):
            raise ValueError("All answer options must be filled in")
        return v

    @model_validator(mode="after")
    def correct_answer_in_range(self):
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer must be the index of one of the options")
        return self


class AssessmentCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None
    time_limit: Optional[int] = Field(None, gt=0)
    questions: List[QuestionCreate] = Field(default_factory=list)


class QuestionResponse(BaseModel):
    """Question as shown to a candidate (no answer key)."""
    id: int
    text: str
    options: List[str]
    time_limit: Optional[int] = None

    class Config:
        from_attributes = True


class StaffQuestionResponse(QuestionResponse):
    correct_answer: int


class AssessmentResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None
    time_limit: Optional[int] = None
    questions: List[QuestionResponse]

    class Config:
        from_attributes = True


class StaffAssessmentResponse(AssessmentResponse):
    questions: List[StaffQuestionResponse]


class AssessmentSubmitRequest(BaseModel):
    """Selected option index per question id, and seconds spent per question."""
    answers: Dict[str, int] = Field(default_factory=dict)
    answer_timings: Dict[str, float] = Field(default_factory=dict)


class AssessmentResultResponse(BaseModel):
    id: int
    candidate_id: str
    assessment_id: int
    score: Optional[int] = None
    completed: bool
    passed: bool = False
    answers: Optional[Dict[str, int]] = None
    answer_timings: Optional[Dict[str, float]] = None
    feedback: Optional[str] = None
    reviewed_by: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReviewRequest(BaseModel):
    feedback: str = Field(..., min_length=1)


class QuestionGenerationRequest(BaseModel):
    topic: str = Field(..., min_length=1)
    count: int = Field(5, ge=1, le=50)
    difficulty: Optional[str] = None
