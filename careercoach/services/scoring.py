from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence

from careercoach.services.errors import EmptyQuestionSet

ANSWER_LETTERS = ("A", "B", "C", "D")
IMPROVEMENT_TIP = "Review the questions you answered incorrectly and study the explanations provided."


@dataclass
class QuestionResult:
    question: Optional[str]
    user_answer: Optional[str]
    correct_answer_text: Optional[str]
    is_correct: bool
    explanation: Optional[str]


@dataclass
class ScoreResult:
    total_questions: int
    correct_answers: int
    quiz_score: int
    questions: List[QuestionResult] = field(default_factory=list)


def percentage(correct: int, total: int) -> int:
    """Whole-number percentage, rounding halves up (1/8 -> 13, 1/3 -> 33)."""
    if total <= 0:
        raise EmptyQuestionSet("Cannot score an assessment with no questions")
    value = Decimal(correct) * 100 / Decimal(total)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def resolve_answer_text(question: Dict[str, Any]) -> Optional[str]:
    """Return the option text behind ``correctAnswer``, or the raw letter if it can't be resolved."""
    letter = question.get("correctAnswer")
    options = question.get("options")
    if letter in ANSWER_LETTERS and isinstance(options, list):
        index = ANSWER_LETTERS.index(letter)
        if index < len(options):
            return options[index]
    return letter


def answer_at(answers: Sequence[Optional[str]], index: int) -> Optional[str]:
    if index >= len(answers):
        return None
    answer = answers[index]
    return answer if answer else None


def score_submission(questions: Any, answers: Sequence[Optional[str]]) -> ScoreResult:
    """
    Score ``answers`` against the stored ``questions`` by position.

    A question counts as correct only when the submitted letter equals
    ``correctAnswer`` exactly. Extra answers are ignored and missing ones
    count as unanswered.
    """
    question_list = questions if isinstance(questions, list) else []
    total = len(question_list)
    if total == 0:
        raise EmptyQuestionSet("Cannot score an assessment with no questions")

    correct = 0
    breakdown = []
    for index, raw_question in enumerate(question_list):
        question = raw_question if isinstance(raw_question, dict) else {}
        user_answer = answer_at(answers, index)
        is_correct = user_answer is not None and user_answer == question.get("correctAnswer")
        if is_correct:
            correct += 1

        breakdown.append(QuestionResult(
            question=question.get("question"),
            user_answer=user_answer,
            correct_answer_text=resolve_answer_text(question),
            is_correct=is_correct,
            explanation=question.get("explanation")
        ))

    return ScoreResult(
        total_questions=total,
        correct_answers=correct,
        quiz_score=percentage(correct, total),
        questions=breakdown
    )
