"""
API endpoints for assessments: authoring, taking, reviewing and AI-assisted
question generation.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.api.endpoints.dashboard import result_response
from app.core.database import get_db
from app.core.deps import AuthContext, get_auth_context, require_candidate, require_staff
from app.crud import assessment as assessment_crud
from app.crud import candidate as candidate_crud
from app.schemas.assessment import (
    AssessmentCreateRequest,
    AssessmentResponse,
    AssessmentResultResponse,
    AssessmentSubmitRequest,
    QuestionGenerationRequest,
    ReviewRequest,
    StaffAssessmentResponse,
)
from app.schemas.user import RemoteOperationResponse
from app.services.functions import FunctionClient, generate_questions, get_function_client

router = APIRouter(prefix="/assessments", tags=["Assessments"])
logger = logging.getLogger(__name__)


@router.post("/", status_code=201, response_model=StaffAssessmentResponse)
def create_assessment(
    request: AssessmentCreateRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    """
    Create an assessment with its questions.

    Questions are validated up front: at least two non-blank options and a
    correct_answer that indexes one of them.
    """
    try:
        assessment = assessment_crud.create(db, request, created_by=auth.user_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating assessment: {e}")
        raise HTTPException(status_code=500, detail="Failed to create assessment")

    logger.info(f"Created assessment {assessment.id} with {len(assessment.questions)} questions")
    return assessment


@router.get("/results/{result_id}", response_model=AssessmentResultResponse)
def get_assessment_result(
    result_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context)
):
    result = assessment_crud.get_result(db, result_id)
    # Candidates only see their own results
    if not result or (not auth.is_staff and result.candidate_id != auth.user_id):
        raise HTTPException(status_code=404, detail="Assessment result not found")
    return result_response(result)


@router.post("/results/{result_id}/review", response_model=AssessmentResultResponse)
def review_assessment_result(
    result_id: int,
    request: ReviewRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff)
):
    result = assessment_crud.get_result(db, result_id)
    if not result:
        raise HTTPException(status_code=404, detail="Assessment result not found")

    result = assessment_crud.review(db, result, auth.user_id, request.feedback)
    logger.info(f"Assessment result {result_id} reviewed by {auth.user_id}")
    return result_response(result)


@router.get("/{assessment_id}")
def get_assessment(
    assessment_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context)
):
    """
    Retrieve an assessment. Answer keys are only included for staff.
    """
    assessment = assessment_crud.get_by_id(db, assessment_id)
    if not assessment:
        raise HTTPException(status_code=404, detail="Assessment not found")

    if auth.is_staff:
        return StaffAssessmentResponse.model_validate(assessment)
    return AssessmentResponse.model_validate(assessment)


@router.post("/{assessment_id}/submit", status_code=201, response_model=AssessmentResultResponse)
def submit_assessment(
    assessment_id: int,
    request: AssessmentSubmitRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_candidate)
):
    """
    Score a candidate's answers and store the attempt.

    Unanswered questions count as wrong.
    """
    assessment = assessment_crud.get_by_id(db, assessment_id)
    if not assessment:
        raise HTTPException(status_code=404, detail="Assessment not found")

    if not candidate_crud.get_by_id(db, auth.user_id):
        raise HTTPException(status_code=404, detail="Candidate record not found")

    result = assessment_crud.submit(db, auth.user_id, assessment, request.answers, request.answer_timings)
    logger.info(f"Candidate {auth.user_id} scored {result.score}% on assessment {assessment_id}")
    return result_response(result)


@router.post("/{assessment_id}/generate-questions", response_model=RemoteOperationResponse)
def generate_assessment_questions(
    assessment_id: int,
    request: QuestionGenerationRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_staff),
    client: FunctionClient = Depends(get_function_client)
):
    """
    Ask the question generation function for draft questions.

    The drafts are returned for editing, not saved.

    Raises:
        HTTPException 404: If the assessment does not exist
        HTTPException 502: If the remote function fails
    """
    assessment = assessment_crud.get_by_id(db, assessment_id)
    if not assessment:
        raise HTTPException(status_code=404, detail="Assessment not found")

    response = generate_questions(client, request.topic, request.count, request.difficulty or assessment.difficulty)
    if not response.success:
        raise HTTPException(status_code=502, detail=response.error)

    return RemoteOperationResponse(success=True, data=response.data)
