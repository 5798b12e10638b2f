from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from careercoach.auth.context import CallerContext
from careercoach.auth.dependencies import get_caller_context
from careercoach.config import settings
from careercoach.database import get_db
from careercoach.services import assessments as assessment_service
from careercoach.services.errors import (
    AssessmentError, AuthenticationRequired, AssessmentNotFound, EmptyQuestionSet,
    GenerationFailed, ResponseParseFailure, ServiceMisconfigured, ServiceOverloaded
)
from careercoach.services.gemini_service import GeminiClient

router = APIRouter(prefix="/assessments", tags=["assessments"])

ERROR_STATUS = {
    AuthenticationRequired: status.HTTP_401_UNAUTHORIZED,
    AssessmentNotFound: status.HTTP_404_NOT_FOUND,
    EmptyQuestionSet: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ServiceOverloaded: status.HTTP_503_SERVICE_UNAVAILABLE,
    ServiceMisconfigured: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ResponseParseFailure: status.HTTP_502_BAD_GATEWAY,
    GenerationFailed: status.HTTP_502_BAD_GATEWAY,
}


def get_generation_client() -> GeminiClient:
    return GeminiClient(
        api_key=settings.GEMINI_API_KEY,
        model_name=settings.GEMINI_MODEL,
        max_attempts=settings.GENERATION_MAX_ATTEMPTS,
        backoff_seconds=settings.GENERATION_BACKOFF_SECONDS
    )


def to_http_exception(error: AssessmentError) -> HTTPException:
    status_code = ERROR_STATUS.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, AuthenticationRequired) else None
    return HTTPException(status_code=status_code, detail=error.user_message, headers=headers)


class GenerateAssessmentRequest(BaseModel):
    topic: str = Field(..., min_length=1)
    difficulty: str = "Medium"
    question_count: int = 10


class SubmitAnswersRequest(BaseModel):
    answers: List[Optional[str]]


class AssessmentResponse(BaseModel):
    id: int
    category: str
    questions: Optional[Any]
    quiz_score: int
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class QuestionResultResponse(BaseModel):
    question: Optional[Any]
    user_answer: Optional[str]
    correct_answer_text: Optional[Any]
    is_correct: bool
    explanation: Optional[Any]


class SubmissionResponse(BaseModel):
    id: int
    quiz_score: int
    category: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    total_questions: int
    correct_answers: int
    questions: List[QuestionResultResponse]
    improvement_tip: str


class AssessmentStatsResponse(BaseModel):
    total_assessments: int
    average_score: float
    highest_score: int
    latest_score: Optional[int]
    trend: List[Dict[str, Any]]


@router.post("", response_model=AssessmentResponse, status_code=status.HTTP_201_CREATED)
def generate_assessment(
    request: GenerateAssessmentRequest,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller_context),
    client: GeminiClient = Depends(get_generation_client)
):
    """Generate a new assessment with Gemini (blocking call, runs in the threadpool)"""
    try:
        return assessment_service.generate_assessment(
            db,
            caller,
            client,
            topic=request.topic,
            difficulty=request.difficulty,
            question_count=request.question_count
        )
    except AssessmentError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[AssessmentResponse])
async def list_assessments(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller_context)
):
    """All assessments of the caller, newest first (empty when not signed in)"""
    return assessment_service.get_assessments(db, caller)


@router.get("/stats", response_model=AssessmentStatsResponse)
async def assessment_stats(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller_context)
):
    stats = assessment_service.get_assessment_stats(db, caller)
    return AssessmentStatsResponse(
        total_assessments=stats.total_assessments,
        average_score=stats.average_score,
        highest_score=stats.highest_score,
        latest_score=stats.latest_score,
        trend=stats.trend
    )


@router.get("/{assessment_id}", response_model=AssessmentResponse)
async def get_assessment(
    assessment_id: int,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller_context)
):
    assessment = assessment_service.get_assessment(db, caller, assessment_id)
    if assessment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=AssessmentNotFound.user_message
        )
    return assessment


@router.post("/{assessment_id}/submit", response_model=SubmissionResponse)
async def submit_answers(
    assessment_id: int,
    request: SubmitAnswersRequest,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller_context)
):
    """Score submitted answers; a later submission replaces the earlier score"""
    try:
        result = assessment_service.submit_assessment_answers(db, caller, assessment_id, request.answers)
    except AssessmentError as e:
        raise to_http_exception(e)

    return SubmissionResponse(
        id=result.id,
        quiz_score=result.quiz_score,
        category=result.category,
        created_at=result.created_at,
        updated_at=result.updated_at,
        total_questions=result.score.total_questions,
        correct_answers=result.score.correct_answers,
        questions=[
            QuestionResultResponse(
                question=q.question,
                user_answer=q.user_answer,
                correct_answer_text=q.correct_answer_text,
                is_correct=q.is_correct,
                explanation=q.explanation
            )
            for q in result.score.questions
        ],
        improvement_tip=result.improvement_tip
    )


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assessment(
    assessment_id: int,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller_context)
):
    try:
        assessment_service.delete_assessment(db, caller, assessment_id)
    except AssessmentError as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
