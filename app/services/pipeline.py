"""
Candidate pipeline state resolver.

Single source of truth for how a candidate's persisted status string and
document flags map to a pipeline step, a display badge, a stage description
and the training access gate.

Pipeline steps:

    0 profile_created
    1 applied ("Applied to job: X" is a display variant of applied)
    2 screening, hr_review
    3 hr_approved, training
    4 manager_interview
    5 paid_project, sales_task
    6 hired      (terminal, success)
    7 rejected, archived (terminal, failure)

Every function here is pure and total. Bad input resolves to a neutral
default instead of raising, since these run while building every dashboard
and list response.
"""

import enum
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union


class CandidateStatus(str, enum.Enum):
    """Persisted candidate status values."""
    PROFILE_CREATED = "profile_created"
    APPLIED = "applied"
    SCREENING = "screening"
    HR_REVIEW = "hr_review"
    HR_APPROVED = "hr_approved"
    TRAINING = "training"
    MANAGER_INTERVIEW = "manager_interview"
    PAID_PROJECT = "paid_project"
    SALES_TASK = "sales_task"
    HIRED = "hired"
    REJECTED = "rejected"
    ARCHIVED = "archived"


APPLIED_TO_JOB_PREFIX = "applied to job:"

# Written by older staff tooling; stored rows still carry it.
LEGACY_ALIASES = {
    "application_in_progress": CandidateStatus.APPLIED,
}

PROFILE_STEP = 0
APPLICATION_STEP = 1
HR_REVIEW_STEP = 2
TRAINING_STEP = 3
INTERVIEW_STEP = 4
PROJECT_STEP = 5
HIRED_STEP = 6
CLOSED_STEP = 7

STATUS_STEPS: Dict[CandidateStatus, int] = {
    CandidateStatus.PROFILE_CREATED: PROFILE_STEP,
    CandidateStatus.APPLIED: APPLICATION_STEP,
    CandidateStatus.SCREENING: HR_REVIEW_STEP,
    CandidateStatus.HR_REVIEW: HR_REVIEW_STEP,
    CandidateStatus.HR_APPROVED: TRAINING_STEP,
    CandidateStatus.TRAINING: TRAINING_STEP,
    CandidateStatus.MANAGER_INTERVIEW: INTERVIEW_STEP,
    CandidateStatus.PAID_PROJECT: PROJECT_STEP,
    CandidateStatus.SALES_TASK: PROJECT_STEP,
    CandidateStatus.HIRED: HIRED_STEP,
    CandidateStatus.REJECTED: CLOSED_STEP,
    CandidateStatus.ARCHIVED: CLOSED_STEP,
}

CLOSED_STATUSES = frozenset({CandidateStatus.REJECTED, CandidateStatus.ARCHIVED})
TERMINAL_STATUSES = CLOSED_STATUSES | {CandidateStatus.HIRED}


@dataclass(frozen=True)
class AppliedToJob:
    """
    Display-only status produced when an "applied" activity names a job.

    Resolves to CandidateStatus.APPLIED wherever the canonical status matters;
    the raw text is kept so it can be shown verbatim.
    """
    text: str

    @property
    def job_title(self) -> str:
        return self.text[len(APPLIED_TO_JOB_PREFIX):].strip()

    @property
    def canonical(self) -> CandidateStatus:
        return CandidateStatus.APPLIED


ParsedStatus = Union[CandidateStatus, AppliedToJob]


@dataclass(frozen=True)
class Badge:
    label: str
    color_class: str


@dataclass(frozen=True)
class Stage:
    name: str
    description: str


@dataclass(frozen=True)
class ModuleInput:
    """Progress counters for one training module, in display order."""
    total_videos: int = 0
    watched_videos: int = 0
    quiz_completed: bool = False


@dataclass(frozen=True)
class ModuleState:
    progress: int
    status: str
    locked: bool


@dataclass(frozen=True)
class PipelineState:
    step: int
    stage: Stage
    badge: Badge
    application_submitted: bool
    can_access_training: bool
    is_terminal: bool


def _normalize(status: Any) -> str:
    if not isinstance(status, str):
        return ""
    return status.strip().lower()


def parse_status(status: Any) -> Optional[ParsedStatus]:
    """
    Parse a raw status string.

    Returns a CandidateStatus, an AppliedToJob wrapper for the
    "Applied to job: X" display variant, or None when unrecognised.
    """
    normalized = _normalize(status)
    if not normalized:
        return None
    if normalized.startswith(APPLIED_TO_JOB_PREFIX):
        return AppliedToJob(text=status.strip())
    if normalized in LEGACY_ALIASES:
        return LEGACY_ALIASES[normalized]
    try:
        return CandidateStatus(normalized)
    except ValueError:
        return None


def canonical_status(status: Any) -> Optional[CandidateStatus]:
    """Like parse_status, but folds the display variant into APPLIED."""
    parsed = parse_status(status)
    if isinstance(parsed, AppliedToJob):
        return parsed.canonical
    return parsed


def derive_step(status: Any) -> Optional[int]:
    """
    Map a status string to its pipeline step (0-7).

    Unknown statuses return None; callers keep the last known step rather
    than overwrite it (see advance_step).
    """
    canonical = canonical_status(status)
    if canonical is None:
        return None
    return STATUS_STEPS[canonical]


def advance_step(current_step: Optional[int], status: Any) -> int:
    """
    Apply a status change to a stored step.

    - unknown status: stored step is kept
    - rejected / archived: always the closed step
    - a closed candidate being reinstated takes the derived step
    - otherwise the step never regresses
    """
    current = current_step if isinstance(current_step, int) else PROFILE_STEP
    derived = derive_step(status)
    if derived is None:
        return current
    if derived == CLOSED_STEP or current == CLOSED_STEP:
        return derived
    return max(current, derived)


def is_application_submitted(resume: Any, about_me_video: Any, sales_pitch_video: Any) -> bool:
    """True iff the resume and both videos are present."""
    return bool(resume) and bool(about_me_video) and bool(sales_pitch_video)


def can_access_training(status: Any, application_submitted: bool) -> bool:
    """Training unlocks once HR has approved a submitted application."""
    step = derive_step(status)
    if step is None or not application_submitted:
        return False
    return TRAINING_STEP <= step <= HIRED_STEP


_BADGES: Dict[CandidateStatus, Badge] = {
    CandidateStatus.PROFILE_CREATED: Badge("Profile Created", "bg-gray-100 text-gray-800"),
    CandidateStatus.APPLIED: Badge("Application in Progress", "bg-blue-100 text-blue-800"),
    CandidateStatus.SCREENING: Badge("Screening", "bg-yellow-100 text-yellow-800"),
    CandidateStatus.HR_REVIEW: Badge("HR Review", "bg-yellow-100 text-yellow-800"),
    CandidateStatus.HR_APPROVED: Badge("Training Phase", "bg-purple-100 text-purple-800"),
    CandidateStatus.TRAINING: Badge("Training Phase", "bg-purple-100 text-purple-800"),
    CandidateStatus.MANAGER_INTERVIEW: Badge("Manager Interview", "bg-green-100 text-green-800"),
    CandidateStatus.PAID_PROJECT: Badge("Paid Project", "bg-orange-100 text-orange-800"),
    CandidateStatus.SALES_TASK: Badge("Sales Task", "bg-orange-100 text-orange-800"),
    CandidateStatus.HIRED: Badge("Hired", "bg-green-100 text-green-800"),
    CandidateStatus.REJECTED: Badge("Rejected", "bg-red-100 text-red-800"),
    CandidateStatus.ARCHIVED: Badge("Archived", "bg-red-100 text-red-800"),
}

APPLIED_TO_JOB_COLOR = "bg-blue-100 text-blue-800"
NEUTRAL_COLOR = "outline"


def badge_for(status: Any) -> Badge:
    """Display badge for a status. Unknown statuses get a neutral badge."""
    parsed = parse_status(status)
    if isinstance(parsed, AppliedToJob):
        return Badge(parsed.text, APPLIED_TO_JOB_COLOR)
    if parsed is None:
        label = status.strip() if isinstance(status, str) and status.strip() else "Unknown"
        return Badge(label, NEUTRAL_COLOR)
    return _BADGES[parsed]


_STEP_STAGES: Dict[int, Stage] = {
    PROFILE_STEP: Stage("Profile Created", "Apply to a job to start your application"),
    APPLICATION_STEP: Stage("Submit Application", "Complete your application to proceed"),
    HR_REVIEW_STEP: Stage("Complete Assessment", "Take your assessment test"),
    TRAINING_STEP: Stage("Training Phase", "Complete training modules"),
    INTERVIEW_STEP: Stage("Interview Phase", "Schedule your interview"),
    PROJECT_STEP: Stage("Final Assessment", "Complete final evaluation"),
    HIRED_STEP: Stage("Hired", "Congratulations! You've been selected."),
}


def stage_for(step: Any, status: Any = None) -> Stage:
    """Human-readable stage for a step, with terminal statuses taking priority."""
    canonical = canonical_status(status)
    if canonical == CandidateStatus.HIRED:
        return _STEP_STAGES[HIRED_STEP]
    if canonical == CandidateStatus.ARCHIVED:
        return Stage("Archived", "Thank you for your interest.")
    if canonical == CandidateStatus.REJECTED or step == CLOSED_STEP:
        return Stage("Not Selected", "Thank you for your interest.")
    if step == HR_REVIEW_STEP and canonical == CandidateStatus.HR_REVIEW:
        return Stage("Under Review", "Application under review, assessment will be available soon")
    return _STEP_STAGES.get(step, Stage("Applied", "Application received"))


def wizard_step_state(step_id: int, current_step: int) -> str:
    """State of one hiring wizard step relative to the candidate's step."""
    if step_id < current_step:
        return "completed"
    if step_id == current_step:
        return "current"
    if step_id == current_step + 1:
        return "pending"
    return "locked"


def round_half_up(value: float) -> int:
    """Round halves up, matching the percentages shown by the web client."""
    return int(math.floor(value + 0.5))


def _module_progress(module: ModuleInput) -> int:
    total = module.total_videos or 0
    quiz_points = 1 if module.quiz_completed else 0
    if total <= 0:
        return 100 if module.quiz_completed else 0
    watched = min(max(module.watched_videos or 0, 0), total)
    return round_half_up(80 * watched / total + 20 * quiz_points)


def resolve_training_module_status(modules: Sequence[ModuleInput]) -> List[ModuleState]:
    """
    Resolve progress and lock state for modules in display order.

    A module is locked unless every module before it is 100% complete; the
    first module is never locked.
    """
    resolved = []
    prev_complete = True
    for module in modules or []:
        progress = _module_progress(module)
        locked = not prev_complete
        if locked:
            status = "locked"
        elif progress == 100:
            status = "completed"
        elif progress > 0:
            status = "in_progress"
        else:
            status = "active"
        resolved.append(ModuleState(progress=progress, status=status, locked=locked))
        prev_complete = prev_complete and progress == 100
    return resolved


def resolve_pipeline(
    status: Any,
    current_step: Optional[int] = None,
    resume: Any = None,
    about_me_video: Any = None,
    sales_pitch_video: Any = None,
) -> PipelineState:
    """
    Resolve the full pipeline view for one candidate record.

    The stored step is reconciled with the status through advance_step, so a
    stale current_step never shows the candidate behind their status.
    """
    step = advance_step(current_step, status)
    submitted = is_application_submitted(resume, about_me_video, sales_pitch_video)
    canonical = canonical_status(status)
    return PipelineState(
        step=step,
        stage=stage_for(step, status),
        badge=badge_for(status),
        application_submitted=submitted,
        can_access_training=can_access_training(status, submitted),
        is_terminal=canonical in TERMINAL_STATUSES,
    )


def resolve_candidate(candidate: Any) -> PipelineState:
    """resolve_pipeline for any object exposing the candidate columns."""
    return resolve_pipeline(
        status=getattr(candidate, "status", None),
        current_step=getattr(candidate, "current_step", None),
        resume=getattr(candidate, "resume", None),
        about_me_video=getattr(candidate, "about_me_video", None),
        sales_pitch_video=getattr(candidate, "sales_pitch_video", None),
    )
