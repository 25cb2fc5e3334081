import asyncio

import pytest
from fastapi.testclient import TestClient

from app import ai_engine
from app.main import app
from app.schemas.quiz import Question, SubjectVerdict, SubSubjectVerdict

REFLECTION = (
    "You handled most of this quiz with confidence and showed a clear grasp of the core "
    "ideas. Revisit the questions you missed and focus on the reasoning behind each option."
)


def _question(num=1, correct=(0,), text=None):
    return {
        "questionNum": num,
        "question": text or f"Which option is correct for question number {num}?",
        "possibleAnswers": ["Alpha", "Beta", "Gamma", "Delta"],
        "correctAnswer": list(correct),
    }


@pytest.fixture
def make_question():
    return _question


@pytest.fixture
def make_answer():
    def _answer(num=1, correct=(0,), user=(0,)):
        return {**_question(num, correct), "userAnswer": list(user)}
    return _answer


@pytest.fixture
def answer_set(make_answer):
    """Ten answers numbered 1..10, all with the same key and selection."""
    def _set(correct=(0,), user=(0,), count=10):
        return [make_answer(i, correct, user) for i in range(1, count + 1)]
    return _set


class FakeContentEngine:
    """Stands in for the AI providers; records every call it receives."""

    def __init__(self):
        self.subject_verdict = SubjectVerdict(is_valid=True)
        self.sub_subject_verdict = SubSubjectVerdict(is_valid=True)
        self.questions = [Question(**_question(i)) for i in range(1, 11)]
        self.reflection = REFLECTION
        self.error = None
        self.delay = 0
        self.calls = []

    async def verify_subject(self, subject):
        self.calls.append(("verify_subject", subject))
        return self.subject_verdict

    async def verify_sub_subject(self, subject, sub_subject):
        self.calls.append(("verify_sub_subject", subject, sub_subject))
        return self.sub_subject_verdict

    async def generate_questions(self, subject, sub_subjects, level):
        self.calls.append(("generate_questions", subject, list(sub_subjects), level))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.questions

    async def compose_reflection(self, facts, answers):
        self.calls.append(("compose_reflection", facts))
        return self.reflection

    def called(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def fake_engine(monkeypatch):
    fake = FakeContentEngine()
    for name in ("verify_subject", "verify_sub_subject", "generate_questions", "compose_reflection"):
        monkeypatch.setattr(ai_engine, name, getattr(fake, name))
    return fake


@pytest.fixture
def client(fake_engine):
    return TestClient(app)
