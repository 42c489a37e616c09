from typing import List, Optional
from pydantic import BaseModel, Field
from app.schemas.assessment import AssessmentSubmitRequest


class VideoResponse(BaseModel):
    id: int
    title: str
    url: str
    duration: Optional[str] = None
    watched: bool = False


class TrainingModuleResponse(BaseModel):
    """Training module with the candidate's progress and lock state."""
    id: int
    title: str
    description: Optional[str] = None
    module: str
    progress: int
    status: str  # locked, active, in_progress, completed
    locked: bool
    total_videos: int
    watched_videos: int
    quiz_id: Optional[int] = None
    quiz_completed: bool
    videos: List[VideoResponse]


class ModuleQuizSubmitRequest(AssessmentSubmitRequest):
    pass


class ModuleQuizResponse(BaseModel):
    result_id: int
    score: int
    passed: bool
    current_step: int
    message: str


class VideoCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1)
    duration: Optional[str] = None


class VideoUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    url: Optional[str] = Field(None, min_length=1)
    duration: Optional[str] = None
    archived: Optional[bool] = None


class TrainingModuleCreateRequest(BaseModel):
    """Schema for creating a training module, optionally with its videos."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    module: str = Field(..., min_length=1, description="Module category, e.g. product, sales, customer-service")
    order_number: int = Field(0, ge=0)
    quiz_id: Optional[int] = None
    videos: List[VideoCreateRequest] = []


class TrainingModuleUpdateRequest(BaseModel):
    """Partial update; only the fields sent are changed."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    module: Optional[str] = Field(None, min_length=1)
    order_number: Optional[int] = Field(None, ge=0)
    quiz_id: Optional[int] = None
    archived: Optional[bool] = None


class VideoDetailResponse(BaseModel):
    id: int
    module_id: int
    title: str
    url: str
    duration: Optional[str] = None
    archived: bool

    class Config:
        from_attributes = True


class TrainingModuleDetailResponse(BaseModel):
    """Staff view of a module, archived videos included."""
    id: int
    title: str
    description: Optional[str] = None
    module: str
    order_number: int
    quiz_id: Optional[int] = None
    archived: bool
    videos: List[VideoDetailResponse]

    class Config:
        from_attributes = True
