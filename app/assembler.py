"""
QuizMaster — Response Contract Assembler
=========================================
Builds the success and error envelopes. Which variant is built depends only
on the upstream outcome; every envelope is validated against its own model
before it leaves.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel

from app.core.errors import ErrorCode, ResponseContractError
from app.schemas.quiz import GenerateQuizRequest, Question, SubjectVerdict, SubSubjectVerdict
from app.schemas.responses import (
    ErrorBody,
    ErrorResponse,
    GenerateQuizResponse,
    ReviewQuizResponse,
    SubjectInvalid,
    SubjectValid,
    SubSubjectInvalid,
    SubSubjectValid,
)
from app.scoring import ScoreResult
from app.validation import ValidationFailure, validate

M = TypeVar("M", bound=BaseModel)


def _build(model: Type[M], **data: Any) -> M:
    result = validate(data, model)
    if isinstance(result, ValidationFailure):
        raise ResponseContractError(
            f"{model.__name__} payload failed validation",
            details=result.details,
        )
    return result.value


# ── Errors ───────────────────────────────────────────────────────────────────

def error_envelope(
    code: Union[ErrorCode, str],
    message: str,
    details: Optional[Any] = None,
) -> ErrorResponse:
    code = code.value if isinstance(code, ErrorCode) else code
    return ErrorResponse(error=ErrorBody(code=code, message=message, details=details))


def validation_failure_envelope(failure: ValidationFailure) -> ErrorResponse:
    return error_envelope(failure.code, failure.message, failure.details)


# ── Verification ─────────────────────────────────────────────────────────────

def subject_verification(
    verdict: SubjectVerdict, subject: str
) -> Union[SubjectValid, SubjectInvalid]:
    if verdict.is_valid:
        return _build(
            SubjectValid,
            subject=verdict.normalized or subject,
            message=f'"{subject}" is a valid subject for quiz generation.',
        )
    return _build(
        SubjectInvalid,
        suggestions=list(verdict.suggestions),
        message=(
            f'"{subject}" is not recognized. '
            "Here are some related subjects you might be interested in."
        ),
    )


def sub_subject_verification(
    verdict: SubSubjectVerdict, subject: str, sub_subject: str
) -> Union[SubSubjectValid, SubSubjectInvalid]:
    if verdict.is_valid:
        return _build(
            SubSubjectValid,
            subject=subject,
            subSubject=verdict.normalized or sub_subject,
            message=f'"{sub_subject}" is a valid sub-topic of {subject}.',
        )
    return _build(
        SubSubjectInvalid,
        suggestions=list(verdict.suggestions),
        message=(
            f'"{sub_subject}" is not directly related to {subject}. '
            "Here are some related sub-topics."
        ),
    )


# ── Quiz ─────────────────────────────────────────────────────────────────────

def quiz_generated(
    questions: Sequence[Question],
    request: GenerateQuizRequest,
    generated_at: Optional[datetime] = None,
) -> GenerateQuizResponse:
    return _build(
        GenerateQuizResponse,
        questions=[q.model_dump() for q in questions],
        metadata={
            "subject": request.subject,
            "subSubjects": list(request.subSubjects),
            "level": request.level,
            "generatedAt": generated_at or datetime.now(timezone.utc),
        },
    )


def quiz_reviewed(result: ScoreResult, reflection: str) -> ReviewQuizResponse:
    return _build(
        ReviewQuizResponse,
        score=result.score,
        correctAnswers=result.correct_answers,
        totalQuestions=result.total_questions,
        reflection=reflection,
        questionReviews=[r.model_dump() for r in result.question_reviews],
    )
