"""
QuizMaster — Error Taxonomy
============================
Error codes shared by every error envelope, plus the exceptions raised by the
content-generation layer and the response assembler.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    QUIZ_GENERATION_ERROR = "QUIZ_GENERATION_ERROR"
    INSUFFICIENT_QUESTIONS = "INSUFFICIENT_QUESTIONS"
    GENERATION_TIMEOUT = "GENERATION_TIMEOUT"
    ENDPOINT_NOT_FOUND = "ENDPOINT_NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    SERVER_ERROR = "SERVER_ERROR"


class QuizMasterError(Exception):
    """Base exception for all QuizMaster errors."""

    code: ErrorCode = ErrorCode.SERVER_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ContentGenerationError(QuizMasterError):
    """Raised when the AI providers fail or return an unusable question set."""

    code = ErrorCode.QUIZ_GENERATION_ERROR
    status_code = 502


class InsufficientQuestionsError(ContentGenerationError):
    """Raised when generation yields well-formed questions, but too few of them."""

    code = ErrorCode.INSUFFICIENT_QUESTIONS
    status_code = 422

    def __init__(self, requested: int, generated: int, attempts: Optional[list] = None):
        self.requested = requested
        self.generated = generated
        super().__init__(
            f"Unable to generate {requested} questions. "
            f"Best attempt generated {generated} questions.",
            details={
                "requested": requested,
                "generated": generated,
                "attempts": attempts or [],
                "suggestion": (
                    "Try simplifying the subject, using fewer sub-subjects, "
                    "or selecting a different difficulty level."
                ),
            },
        )


class ResponseContractError(QuizMasterError):
    """Raised when an assembled response payload breaks its own contract."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 500


class GenerationTimeoutError(QuizMasterError):
    """Raised when an AI provider call exceeds AI_TIMEOUT_SECONDS."""

    code = ErrorCode.GENERATION_TIMEOUT
    status_code = 504
