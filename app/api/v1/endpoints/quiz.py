import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, TypeVar

from fastapi import APIRouter

from app import ai_engine, assembler
from app.core.config import settings
from app.core.errors import GenerationTimeoutError
from app.schemas.quiz import (
    GenerateQuizRequest,
    QuizReviewRequest,
    VerifySubjectRequest,
    VerifySubSubjectRequest,
)
from app.schemas.responses import (
    EndpointInfo,
    GenerateQuizResponse,
    ReviewQuizResponse,
    ServiceHealth,
    VerifySubjectResponse,
    VerifySubSubjectResponse,
)
from app.scoring import score_quiz
from app.services.feedback import explain_answer, fallback_reflection

logger = logging.getLogger(__name__)

router = APIRouter()

T = TypeVar("T")

ENDPOINTS = [
    EndpointInfo(method="POST", path="/api/verify-subject", description="Verify subject validity"),
    EndpointInfo(method="POST", path="/api/verify-sub-subject", description="Verify sub-subject relation to subject"),
    EndpointInfo(method="POST", path="/api/generate-quiz", description="Generate 10 multiple choice questions"),
    EndpointInfo(method="POST", path="/api/review-quiz", description="Review quiz answers and provide feedback"),
]


async def _with_timeout(call: Awaitable[T]) -> T:
    """Bound a content-generation call by AI_TIMEOUT_SECONDS."""
    try:
        return await asyncio.wait_for(call, timeout=settings.AI_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        raise GenerationTimeoutError(
            f"AI processing timed out after {settings.AI_TIMEOUT_SECONDS}s.",
            details={"suggestion": "Please try again in a moment."},
        )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. VERIFICATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/verify-subject", response_model=VerifySubjectResponse)
async def verify_subject(request: VerifySubjectRequest):
    """Verify a subject; an unrecognised one comes back with 5 alternatives."""
    verdict = await _with_timeout(ai_engine.verify_subject(request.subject))
    return assembler.subject_verification(verdict, request.subject)


@router.post("/verify-sub-subject", response_model=VerifySubSubjectResponse)
async def verify_sub_subject(request: VerifySubSubjectRequest):
    """Verify a sub-subject belongs to its subject; otherwise up to 5 related ones."""
    verdict = await _with_timeout(
        ai_engine.verify_sub_subject(request.subject, request.subSubject)
    )
    return assembler.sub_subject_verification(verdict, request.subject, request.subSubject)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. QUIZ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/generate-quiz", response_model=GenerateQuizResponse)
async def generate_quiz(request: GenerateQuizRequest):
    """Generate a 10-question quiz for the subject, sub-subjects and level."""
    questions = await _with_timeout(
        ai_engine.generate_questions(request.subject, request.subSubjects, request.level)
    )
    return assembler.quiz_generated(questions, request)


@router.post("/review-quiz", response_model=ReviewQuizResponse, response_model_exclude_none=True)
async def review_quiz(request: QuizReviewRequest):
    """Score a completed quiz and attach per-question reviews and a reflection."""
    logger.info(f"[REVIEW] Reviewing quiz submission with {len(request.userAnswers)} answers")

    result = score_quiz(
        request,
        explainer=explain_answer,
        policy=settings.EXPLANATION_POLICY,
    )
    logger.info(f"[REVIEW] Score {result.score}% ({result.correct_answers}/{result.total_questions})")

    try:
        reflection = await _with_timeout(
            ai_engine.compose_reflection(result.facts, request.userAnswers)
        )
    except GenerationTimeoutError:
        logger.warning("[REVIEW] Reflection timed out, using fallback")
        reflection = fallback_reflection(result.facts)

    return assembler.quiz_reviewed(result, reflection)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. HEALTH
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/health", response_model=ServiceHealth)
async def service_health():
    return ServiceHealth(
        version=settings.SERVICE_VERSION,
        endpoints=ENDPOINTS,
        timestamp=datetime.now(timezone.utc),
    )
