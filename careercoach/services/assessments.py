"""
Assessment workflow: generate a quiz with Gemini, store it, score submissions.

Every entry point takes the caller's ``CallerContext`` explicitly. Writes
require an authenticated caller; reads degrade to empty results instead.
Records belonging to someone else behave exactly like missing ones.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Union

from sqlalchemy.orm import Session

from careercoach.auth.context import CallerContext
from careercoach.models import Assessment, User
from careercoach.services.errors import (
    AuthenticationRequired, AssessmentNotFound, ResponseParseFailure
)
from careercoach.services.gemini_service import GeminiClient
from careercoach.services.prompts import compose_assessment_prompt
from careercoach.services.response_parser import parse_generated_questions
from careercoach.services.scoring import IMPROVEMENT_TIP, ScoreResult, score_submission

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    id: int
    quiz_score: int
    category: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    score: ScoreResult
    improvement_tip: str = IMPROVEMENT_TIP


@dataclass
class AssessmentStats:
    total_assessments: int = 0
    average_score: float = 0.0
    highest_score: int = 0
    latest_score: Optional[int] = None
    trend: List[Dict] = field(default_factory=list)


def _require_user(caller: CallerContext) -> int:
    if not caller.is_authenticated:
        raise AuthenticationRequired("No authenticated caller")
    return caller.user_id


def _owned_assessment(db: Session, user_id: int, assessment_id: int) -> Optional[Assessment]:
    return db.query(Assessment).filter(
        Assessment.id == assessment_id,
        Assessment.user_id == user_id
    ).first()


def generate_assessment(
    db: Session,
    caller: CallerContext,
    client: GeminiClient,
    topic: str,
    difficulty: str,
    question_count: Union[int, str],
) -> Assessment:
    """Generate, parse and store a new assessment with a score of 0."""
    user_id = _require_user(caller)
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationRequired("Caller has no user record")

    prompt = compose_assessment_prompt(
        topic,
        difficulty,
        question_count,
        industry=user.industry,
        experience=user.experience,
        skills=user.skills
    )
    raw_text = client.generate(prompt)

    parsed = parse_generated_questions(raw_text)
    if not parsed.ok:
        raise ResponseParseFailure(parsed.reason)

    assessment = Assessment(
        user_id=user_id,
        category=topic,
        questions=parsed.questions,
        quiz_score=0
    )
    try:
        db.add(assessment)
        db.commit()
        db.refresh(assessment)
    except Exception:
        db.rollback()
        raise

    question_total = len(parsed.questions) if isinstance(parsed.questions, list) else 0
    logger.info(
        "Created assessment %s for user %s (%d questions, %s requested)",
        assessment.id, user_id, question_total, question_count
    )
    return assessment


def submit_assessment_answers(
    db: Session,
    caller: CallerContext,
    assessment_id: int,
    answers: Sequence[Optional[str]],
) -> SubmissionResult:
    """Score ``answers`` and overwrite the stored score (last submission wins)."""
    user_id = _require_user(caller)
    assessment = _owned_assessment(db, user_id, assessment_id)
    if assessment is None:
        raise AssessmentNotFound(f"Assessment {assessment_id} not found for user {user_id}")

    result = score_submission(assessment.questions, answers)

    try:
        assessment.quiz_score = result.quiz_score
        assessment.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(assessment)
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Scored assessment %s for user %s: %d/%d correct (%d%%)",
        assessment.id, user_id, result.correct_answers, result.total_questions, result.quiz_score
    )
    return SubmissionResult(
        id=assessment.id,
        quiz_score=assessment.quiz_score,
        category=assessment.category,
        created_at=assessment.created_at,
        updated_at=assessment.updated_at,
        score=result
    )


def get_assessment(db: Session, caller: CallerContext, assessment_id: int) -> Optional[Assessment]:
    if not caller.is_authenticated:
        return None
    return _owned_assessment(db, caller.user_id, assessment_id)


def get_assessments(db: Session, caller: CallerContext) -> List[Assessment]:
    """All of the caller's assessments, newest first."""
    if not caller.is_authenticated:
        return []
    return db.query(Assessment).filter(
        Assessment.user_id == caller.user_id
    ).order_by(Assessment.created_at.desc(), Assessment.id.desc()).all()


def delete_assessment(db: Session, caller: CallerContext, assessment_id: int) -> None:
    user_id = _require_user(caller)
    assessment = _owned_assessment(db, user_id, assessment_id)
    if assessment is None:
        raise AssessmentNotFound(f"Assessment {assessment_id} not found for user {user_id}")

    try:
        db.delete(assessment)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted assessment %s for user %s", assessment_id, user_id)


def get_assessment_stats(db: Session, caller: CallerContext) -> AssessmentStats:
    """Dashboard numbers for the caller's assessments."""
    assessments = list(reversed(get_assessments(db, caller)))
    if not assessments:
        return AssessmentStats()

    scores = [a.quiz_score or 0 for a in assessments]
    return AssessmentStats(
        total_assessments=len(assessments),
        average_score=round(sum(scores) / len(scores), 1),
        highest_score=max(scores),
        latest_score=scores[-1],
        trend=[
            {
                "id": a.id,
                "category": a.category,
                "quiz_score": a.quiz_score,
                "created_at": a.created_at
            }
            for a in assessments
        ]
    )
