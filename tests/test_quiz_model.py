import pytest
from pydantic import ValidationError

from app.schemas.quiz import (
    PublicQuestion,
    Question,
    UserAnswer,
    is_complete_answer_set,
    is_structurally_valid,
    to_public_question,
)


def test_validated_question_is_structurally_valid(make_question):
    assert is_structurally_valid(Question(**make_question(3, correct=(1, 2))))


def test_unchecked_question_with_bad_index_is_not_valid(make_question):
    question = Question.model_construct(**make_question(correct=(0, 5)))
    assert not is_structurally_valid(question)


def test_unchecked_question_with_three_options_is_not_valid(make_question):
    question = Question.model_construct(**{**make_question(), "possibleAnswers": ["A", "B", "C"]})
    assert not is_structurally_valid(question)


def test_complete_answer_set(answer_set):
    answers = [UserAnswer(**a) for a in answer_set()]
    assert is_complete_answer_set(answers)
    assert not is_complete_answer_set(answers[:9])
    assert not is_complete_answer_set(answers + answers[:1])


def test_public_projection_drops_answer_key(make_question):
    question = Question(**make_question(4, correct=(2,)))
    public = to_public_question(question)

    assert isinstance(public, PublicQuestion)
    assert "correctAnswer" not in public.model_dump()
    assert public.questionNum == 4
    assert public.possibleAnswers == question.possibleAnswers
    assert question.correctAnswer == [2]


def test_entities_are_immutable(make_answer):
    answer = UserAnswer(**make_answer())
    with pytest.raises(ValidationError):
        answer.userAnswer = [1]
