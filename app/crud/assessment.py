"""
CRUD operations for assessments and assessment results.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set
from sqlalchemy.orm import Session
from app.models.assessment import Assessment, AssessmentResult, Question
from app.schemas.assessment import AssessmentCreateRequest
from app.services.scoring import PASSING_SCORE, score_quiz


def create(db: Session, data: AssessmentCreateRequest, created_by: Optional[str] = None) -> Assessment:
    assessment = Assessment(
        title=data.title,
        description=data.description,
        topic=data.topic,
        difficulty=data.difficulty,
        time_limit=data.time_limit,
        created_by=created_by,
    )
    for index, question in enumerate(data.questions):
        assessment.questions.append(Question(
            text=question.text,
            options=list(question.options),
            correct_answer=question.correct_answer,
            time_limit=question.time_limit,
            order_number=index,
        ))

    db.add(assessment)
    db.commit()
    db.refresh(assessment)
    return assessment


def get_by_id(db: Session, assessment_id: int) -> Optional[Assessment]:
    return (
        db.query(Assessment)
        .filter(Assessment.id == assessment_id, Assessment.archived.is_(False))
        .first()
    )


def submit(
    db: Session,
    candidate_id: str,
    assessment: Assessment,
    answers: Dict[str, int],
    answer_timings: Optional[Dict[str, float]] = None,
) -> AssessmentResult:
    """
    Score and store a completed attempt.

    Args:
        db: Database session
        candidate_id: Candidate taking the assessment
        assessment: Assessment with its questions loaded
        answers: Selected option index per question id
        answer_timings: Seconds spent per question id

    Returns:
        The stored AssessmentResult
    """
    score = score_quiz(assessment.questions, answers)
    result = AssessmentResult(
        candidate_id=candidate_id,
        assessment_id=assessment.id,
        score=score,
        completed=True,
        answers={str(k): v for k, v in (answers or {}).items()},
        answer_timings={str(k): v for k, v in (answer_timings or {}).items()},
        completed_at=datetime.now(timezone.utc),
    )
    db.add(result)
    db.commit()
    db.refresh(result)
    return result


def get_result(db: Session, result_id: int) -> Optional[AssessmentResult]:
    return db.query(AssessmentResult).filter(AssessmentResult.id == result_id).first()


def review(db: Session, result: AssessmentResult, reviewer_id: str, feedback: str) -> AssessmentResult:
    result.feedback = feedback
    result.reviewed_by = reviewer_id
    result.reviewed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(result)
    return result


def get_latest_for_candidate(db: Session, candidate_id: str, limit: int = 5) -> List[AssessmentResult]:
    return (
        db.query(AssessmentResult)
        .filter(AssessmentResult.candidate_id == candidate_id)
        .order_by(AssessmentResult.created_at.desc(), AssessmentResult.id.desc())
        .limit(limit)
        .all()
    )


def passed_assessment_ids(db: Session, candidate_id: str, assessment_ids: Iterable[int]) -> Set[int]:
    """Which of the given assessments the candidate has passed at least once."""
    ids = [i for i in assessment_ids if i is not None]
    if not ids:
        return set()
    rows = (
        db.query(AssessmentResult.assessment_id)
        .filter(
            AssessmentResult.candidate_id == candidate_id,
            AssessmentResult.assessment_id.in_(ids),
            AssessmentResult.completed.is_(True),
            AssessmentResult.score >= PASSING_SCORE,
        )
        .distinct()
        .all()
    )
    return {row[0] for row in rows}
