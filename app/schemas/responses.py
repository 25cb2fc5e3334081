"""
QuizMaster — Response Envelopes
================================
Every response from this API is either one of the success shapes below or
ErrorResponse. Verification results are tagged on `valid`: the two branches
are separate models and never share fields.
"""

from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from app.schemas.quiz import QUIZ_LENGTH, DifficultyLevel, Question, QuestionReview


# ── Error ────────────────────────────────────────────────────────────────────

class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Standard error envelope."""
    success: Literal[False] = False
    error: ErrorBody


# ── Verification (tagged on `valid`) ─────────────────────────────────────────

class SubjectValid(BaseModel):
    success: Literal[True] = True
    valid: Literal[True] = True
    subject: str
    message: str


class SubjectInvalid(BaseModel):
    success: Literal[True] = True
    valid: Literal[False] = False
    suggestions: List[str] = Field(..., min_length=5, max_length=5)
    message: str


class SubSubjectValid(BaseModel):
    success: Literal[True] = True
    valid: Literal[True] = True
    subject: str
    subSubject: str
    message: str


class SubSubjectInvalid(BaseModel):
    success: Literal[True] = True
    valid: Literal[False] = False
    suggestions: List[str] = Field(..., max_length=5)
    message: str


VerifySubjectResponse = Annotated[
    Union[SubjectValid, SubjectInvalid], Field(discriminator="valid")
]
VerifySubSubjectResponse = Annotated[
    Union[SubSubjectValid, SubSubjectInvalid], Field(discriminator="valid")
]


# ── Quiz Generation ──────────────────────────────────────────────────────────

class QuizMetadata(BaseModel):
    subject: str
    subSubjects: List[str]
    level: DifficultyLevel
    generatedAt: datetime


class GenerateQuizResponse(BaseModel):
    success: Literal[True] = True
    questions: List[Question] = Field(..., min_length=QUIZ_LENGTH, max_length=QUIZ_LENGTH)
    metadata: QuizMetadata


# ── Quiz Review ──────────────────────────────────────────────────────────────

class ReviewQuizResponse(BaseModel):
    success: Literal[True] = True
    score: int = Field(..., ge=0, le=100)
    correctAnswers: int = Field(..., ge=0, le=QUIZ_LENGTH)
    totalQuestions: Literal[10] = QUIZ_LENGTH
    reflection: str = Field(..., min_length=100, max_length=1000)
    questionReviews: List[QuestionReview] = Field(..., min_length=QUIZ_LENGTH, max_length=QUIZ_LENGTH)


# ── Health ───────────────────────────────────────────────────────────────────

class EndpointInfo(BaseModel):
    method: str
    path: str
    description: str


class ServiceHealth(BaseModel):
    service: str = "quiz-api"
    status: str = "healthy"
    version: str
    endpoints: List[EndpointInfo]
    timestamp: datetime


class ProcessHealth(BaseModel):
    status: str = "healthy"
    timestamp: datetime
    environment: str
    uptime: float = Field(..., description="Seconds since process start")
    memory: dict
