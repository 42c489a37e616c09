"""
Database models package.
"""

from app.models.profile import Profile, UserRole
from app.models.candidate import Candidate
from app.models.job import Job, JobApplication
from app.models.assessment import Assessment, Question, AssessmentResult
from app.models.training import TrainingModule, Video, VideoProgress
from app.models.interview import Interview, InterviewStatus
from app.models.activity_log import ActivityLog

__all__ = [
    "Profile", "UserRole", "Candidate", "Job", "JobApplication",
    "Assessment", "Question", "AssessmentResult",
    "TrainingModule", "Video", "VideoProgress", "Interview", "InterviewStatus", "ActivityLog",
]
