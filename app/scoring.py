"""
QuizMaster — Scoring Engine
============================
Turns a validated QuizReviewRequest into a score and per-question reviews.

Total over validated input: it never raises for business reasons. Explanation
and reflection text are produced elsewhere; the engine only decides whether an
explanation is attached and surfaces the facts a reflection needs.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Callable, Optional, Tuple

from app.schemas.quiz import QUIZ_LENGTH, QuestionReview, QuizReviewRequest, UserAnswer

Explainer = Callable[[UserAnswer, bool], str]


class ExplanationPolicy(str, Enum):
    always = "always"
    incorrect_only = "incorrect_only"
    never = "never"

    def wants(self, is_correct: bool) -> bool:
        if self is ExplanationPolicy.always:
            return True
        if self is ExplanationPolicy.incorrect_only:
            return not is_correct
        return False


@dataclass(frozen=True)
class ReflectionFacts:
    """What a reflection writer is told about the attempt."""
    score: int
    correct_answers: int
    total_questions: int
    incorrect_question_nums: Tuple[int, ...]


@dataclass(frozen=True)
class ScoreResult:
    score: int
    correct_answers: int
    total_questions: int
    question_reviews: Tuple[QuestionReview, ...]

    @property
    def facts(self) -> ReflectionFacts:
        return ReflectionFacts(
            score=self.score,
            correct_answers=self.correct_answers,
            total_questions=self.total_questions,
            incorrect_question_nums=tuple(
                r.questionNum for r in self.question_reviews if not r.isCorrect
            ),
        )


def is_answer_correct(answer: UserAnswer) -> bool:
    """Exact set equality: order and duplicates are irrelevant, subsets and supersets are wrong."""
    return set(answer.userAnswer) == set(answer.correctAnswer)


def score_percentage(correct: int, total: int = QUIZ_LENGTH) -> int:
    """Percentage of correct answers, rounded half-up to an integer."""
    ratio = Decimal(correct) / Decimal(total) * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def score_quiz(
    request: QuizReviewRequest,
    explainer: Optional[Explainer] = None,
    policy: ExplanationPolicy = ExplanationPolicy.always,
) -> ScoreResult:
    # sorted() is stable: answers sharing a questionNum keep submission order
    answers = sorted(request.userAnswers, key=lambda a: a.questionNum)

    reviews = []
    for answer in answers:
        correct = is_answer_correct(answer)
        explanation = None
        if explainer is not None and policy.wants(correct):
            explanation = explainer(answer, correct)
        reviews.append(
            QuestionReview(questionNum=answer.questionNum, isCorrect=correct, explanation=explanation)
        )

    correct_count = sum(1 for r in reviews if r.isCorrect)
    return ScoreResult(
        score=score_percentage(correct_count),
        correct_answers=correct_count,
        total_questions=QUIZ_LENGTH,
        question_reviews=tuple(reviews),
    )
