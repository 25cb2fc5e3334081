import logging

import pytest
from pydantic import ValidationError

from app.core.config import Settings
from app.scoring import ExplanationPolicy


@pytest.mark.parametrize("raw, expected", [("info", "INFO"), ("Debug", "DEBUG"), ("WARNING", "WARNING")])
def test_log_level_is_normalised(raw, expected):
    level = Settings(LOG_LEVEL=raw).LOG_LEVEL
    assert level == expected
    logging.getLogger("quizmaster.test").setLevel(level)


def test_log_level_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "error")
    assert Settings().LOG_LEVEL == "ERROR"


def test_unknown_log_level_rejected():
    with pytest.raises(ValidationError):
        Settings(LOG_LEVEL="verbose")


def test_ai_provider_is_lowercased():
    assert Settings(AI_PROVIDER="Gemini").AI_PROVIDER == "gemini"
    with pytest.raises(ValidationError):
        Settings(AI_PROVIDER="openai")


def test_explanation_policy_parses_to_enum(monkeypatch):
    monkeypatch.delenv("EXPLANATION_POLICY", raising=False)
    assert Settings().EXPLANATION_POLICY is ExplanationPolicy.always
    assert Settings(EXPLANATION_POLICY="INCORRECT_ONLY").EXPLANATION_POLICY is ExplanationPolicy.incorrect_only


def test_explanation_policy_from_environment(monkeypatch):
    monkeypatch.setenv("EXPLANATION_POLICY", "never")
    assert Settings().EXPLANATION_POLICY is ExplanationPolicy.never


def test_unknown_explanation_policy_rejected():
    with pytest.raises(ValidationError):
        Settings(EXPLANATION_POLICY="sometimes")
