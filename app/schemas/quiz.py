"""
QuizMaster — Quiz Content Model
================================
Request and entity shapes for quizzes, with their field constraints declared
once, next to the field they guard.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, List, Optional, Sequence

from pydantic import AfterValidator, BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

QUIZ_LENGTH = 10
OPTION_COUNT = 4

SUBJECT_CHARSET = re.compile(r"^[a-zA-Z0-9\s\-&,.()]+$")
SUB_SUBJECT_CHARSET = re.compile(r"^[a-zA-Z0-9\s\-&,.()/:]+$")


# ── Text Constraint Descriptors ──────────────────────────────────────────────

@dataclass(frozen=True)
class TextRule:
    """Length + charset constraint for a free-text field. Trims before checking."""
    label: str
    min_length: int
    max_length: int
    charset: Optional[re.Pattern] = None

    def __call__(self, value: str) -> str:
        value = value.strip()
        problems = []
        if len(value) < self.min_length:
            problems.append(f"{self.label} must be at least {self.min_length} characters")
        if len(value) > self.max_length:
            problems.append(f"{self.label} must be at most {self.max_length} characters")
        if self.charset is not None and value and not self.charset.match(value):
            problems.append(
                f"{self.label} contains invalid characters. "
                "Only letters, numbers, spaces, and basic punctuation allowed."
            )
        if problems:
            raise PydanticCustomError("text_rule", "; ".join(problems))
        return value


SUBJECT_RULE = TextRule("Subject", 2, 100, SUBJECT_CHARSET)
SUB_SUBJECT_RULE = TextRule("Sub-subject", 2, 150, SUB_SUBJECT_CHARSET)

Subject = Annotated[str, AfterValidator(SUBJECT_RULE)]
SubSubject = Annotated[str, AfterValidator(SUB_SUBJECT_RULE)]
AnswerIndex = Annotated[int, Field(strict=True, ge=0, le=OPTION_COUNT - 1)]
QuestionNum = Annotated[int, Field(strict=True, ge=1, le=QUIZ_LENGTH)]


class DifficultyLevel(str, Enum):
    easy = "easy"
    intermediate = "intermediate"
    hard = "hard"


# ── Entities ─────────────────────────────────────────────────────────────────

class Question(BaseModel):
    """A multiple-choice question: exactly 4 options, 1-4 correct indices."""
    questionNum: QuestionNum
    question: str = Field(..., min_length=10, max_length=500)
    possibleAnswers: List[str] = Field(..., min_length=OPTION_COUNT, max_length=OPTION_COUNT)
    correctAnswer: List[AnswerIndex] = Field(..., min_length=1, max_length=OPTION_COUNT)

    model_config = {"frozen": True}

    @field_validator("correctAnswer")
    @classmethod
    def correct_answers_distinct(cls, v: List[int]) -> List[int]:
        if len(set(v)) != len(v):
            raise ValueError("Correct answer indices must be distinct")
        return v


class PublicQuestion(BaseModel):
    """
    A question as shown to a test-taker: no answer key.
    The HTTP API returns full Questions because review re-submits
    correctAnswer; this projection is for callers that present a quiz and
    keep the key on their side.
    """
    questionNum: int
    question: str
    possibleAnswers: List[str]

    model_config = {"frozen": True}


class UserAnswer(Question):
    """A question plus the learner's selection (may be empty)."""
    userAnswer: List[AnswerIndex] = Field(..., min_length=0, max_length=OPTION_COUNT)


class QuestionReview(BaseModel):
    """Per-question verdict, with optional explanation text."""
    questionNum: int
    isCorrect: bool
    explanation: Optional[str] = None

    model_config = {"frozen": True}


# ── Requests ─────────────────────────────────────────────────────────────────

class VerifySubjectRequest(BaseModel):
    subject: Subject

    model_config = {"frozen": True}


class VerifySubSubjectRequest(BaseModel):
    subject: Subject
    subSubject: SubSubject

    model_config = {"frozen": True}


class GenerateQuizRequest(BaseModel):
    """Request body for quiz generation."""
    subject: Subject
    subSubjects: List[SubSubject] = Field(default_factory=list, max_length=10)
    level: DifficultyLevel

    model_config = {"frozen": True}


class QuizReviewRequest(BaseModel):
    """Request body for quiz review: the full answered quiz, re-submitted."""
    userAnswers: List[UserAnswer] = Field(..., min_length=QUIZ_LENGTH, max_length=QUIZ_LENGTH)

    model_config = {"frozen": True}


# ── Verification Verdicts (content-generation output) ────────────────────────

class SubjectVerdict(BaseModel):
    is_valid: bool
    normalized: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    reasoning: Optional[str] = None


class SubSubjectVerdict(BaseModel):
    is_valid: bool
    normalized: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    reasoning: Optional[str] = None


# ── Predicates & Projections ─────────────────────────────────────────────────

def is_structurally_valid(question: Question) -> bool:
    """Re-check the structural invariants of a question, including index bounds."""
    options = question.possibleAnswers
    correct = question.correctAnswer
    return (
        1 <= question.questionNum <= QUIZ_LENGTH
        and 10 <= len(question.question) <= 500
        and len(options) == OPTION_COUNT
        and 1 <= len(correct) <= OPTION_COUNT
        and len(set(correct)) == len(correct)
        and all(0 <= i < len(options) for i in correct)
    )


def is_complete_answer_set(user_answers: Sequence[UserAnswer]) -> bool:
    return len(user_answers) == QUIZ_LENGTH


def to_public_question(question: Question) -> PublicQuestion:
    """Strip the answer key; returns a new value, `question` is untouched."""
    return PublicQuestion(
        questionNum=question.questionNum,
        question=question.question,
        possibleAnswers=list(question.possibleAnswers),
    )
