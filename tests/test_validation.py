import pytest

from app.core.errors import ErrorCode
from app.schemas.quiz import (
    DifficultyLevel,
    GenerateQuizRequest,
    Question,
    QuizReviewRequest,
    UserAnswer,
    VerifySubjectRequest,
    VerifySubSubjectRequest,
)
from app.schemas.responses import ReviewQuizResponse
from app.validation import Validated, ValidationFailure, validate


def fields_of(result):
    assert isinstance(result, ValidationFailure)
    return {v.field for v in result.violations}


# ── Subject ──────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("subject", [
    "Mathematics",
    "AB",
    "A" * 100,
    "World History (1900-1950)",
    "Arts & Crafts, Vol. 2",
])
def test_subject_accepts_allowed_charset_and_length(subject):
    result = validate({"subject": subject}, VerifySubjectRequest)
    assert isinstance(result, Validated)
    assert result.value.subject == subject


@pytest.mark.parametrize("subject", ["A", "A" * 101, "C++", "Math!", "Physics/Chemistry", "Sci: Fi", "Café"])
def test_subject_rejects_bad_length_or_charset(subject):
    result = validate({"subject": subject}, VerifySubjectRequest)
    assert isinstance(result, ValidationFailure)
    assert result.code == ErrorCode.VALIDATION_ERROR
    assert fields_of(result) == {"subject"}


def test_subject_is_trimmed_before_checks():
    result = validate({"subject": "   Biology  "}, VerifySubjectRequest)
    assert result.value.subject == "Biology"

    result = validate({"subject": "  A  "}, VerifySubjectRequest)
    assert isinstance(result, ValidationFailure)


def test_subject_reports_length_and_charset_together():
    result = validate({"subject": "!"}, VerifySubjectRequest)
    message = result.violations[0].message
    assert "at least 2 characters" in message
    assert "invalid characters" in message


def test_sub_subject_allows_slash_and_colon():
    result = validate(
        {"subject": "Computer Science", "subSubject": "Networking: TCP/IP"},
        VerifySubSubjectRequest,
    )
    assert isinstance(result, Validated)

    result = validate({"subject": "Computer Science", "subSubject": "x" * 151}, VerifySubSubjectRequest)
    assert fields_of(result) == {"subSubject"}


# ── Generate request ─────────────────────────────────────────────────────────

def test_sub_subjects_default_to_empty_list():
    result = validate({"subject": "Mathematics", "level": "easy"}, GenerateQuizRequest)
    assert result.value.subSubjects == []
    assert result.value.level is DifficultyLevel.easy


@pytest.mark.parametrize("count", [0, 1, 10])
def test_sub_subjects_up_to_ten_accepted(count):
    payload = {"subject": "Mathematics", "subSubjects": [f"Topic {i}" for i in range(count)], "level": "hard"}
    assert isinstance(validate(payload, GenerateQuizRequest), Validated)


def test_eleven_sub_subjects_rejected():
    payload = {"subject": "Mathematics", "subSubjects": [f"Topic {i}" for i in range(11)], "level": "hard"}
    assert fields_of(validate(payload, GenerateQuizRequest)) == {"subSubjects"}


def test_level_must_be_known():
    result = validate({"subject": "Mathematics", "level": "expert"}, GenerateQuizRequest)
    assert fields_of(result) == {"level"}


def test_every_violation_is_reported():
    payload = {"subject": "!", "subSubjects": ["x"], "level": "extreme"}
    result = validate(payload, GenerateQuizRequest)
    assert fields_of(result) == {"subject", "subSubjects.0", "level"}
    assert len(result.details) == 3
    assert all(set(d) == {"field", "message", "type"} for d in result.details)


# ── Questions & answers ──────────────────────────────────────────────────────

@pytest.mark.parametrize("num", [1, 5, 10])
def test_question_num_in_range(make_question, num):
    assert isinstance(validate(make_question(num), Question), Validated)


@pytest.mark.parametrize("num", [0, 11, -1])
def test_question_num_out_of_range(make_question, num):
    assert fields_of(validate(make_question(num), Question)) == {"questionNum"}


@pytest.mark.parametrize("num", ["1", 1.5, True])
def test_question_num_must_be_an_integer(make_question, num):
    assert fields_of(validate(make_question(num), Question)) == {"questionNum"}


@pytest.mark.parametrize("text", ["Too short", "Q" * 501])
def test_question_text_length(make_question, text):
    assert fields_of(validate(make_question(text=text), Question)) == {"question"}


@pytest.mark.parametrize("options", [["A", "B", "C"], ["A", "B", "C", "D", "E"]])
def test_exactly_four_possible_answers(make_question, options):
    payload = {**make_question(), "possibleAnswers": options}
    assert fields_of(validate(payload, Question)) == {"possibleAnswers"}


@pytest.mark.parametrize("correct", [[0], [1, 3], [0, 1, 2, 3]])
def test_correct_answer_accepted(make_question, correct):
    assert isinstance(validate(make_question(correct=correct), Question), Validated)


def test_correct_answer_rejects_empty_duplicates_and_range(make_question):
    assert fields_of(validate(make_question(correct=[]), Question)) == {"correctAnswer"}
    assert fields_of(validate(make_question(correct=[1, 1]), Question)) == {"correctAnswer"}
    assert fields_of(validate(make_question(correct=[4]), Question)) == {"correctAnswer.0"}
    assert fields_of(validate(make_question(correct=[0, 1, 2, 3, 0]), Question)) == {"correctAnswer"}


@pytest.mark.parametrize("user", [[], [2], [0, 1, 2, 3]])
def test_user_answer_may_be_empty_or_full(make_answer, user):
    assert isinstance(validate(make_answer(user=user), UserAnswer), Validated)


def test_user_answer_bounds(make_answer):
    assert fields_of(validate(make_answer(user=[0, 1, 2, 3, 3]), UserAnswer)) == {"userAnswer"}
    assert fields_of(validate(make_answer(user=[-1]), UserAnswer)) == {"userAnswer.0"}


@pytest.mark.parametrize("count", [9, 11, 0])
def test_answer_set_must_have_ten_entries(answer_set, count):
    result = validate({"userAnswers": answer_set(count=count)}, QuizReviewRequest)
    assert "userAnswers" in fields_of(result)


def test_complete_answer_set_accepted(answer_set):
    result = validate({"userAnswers": answer_set()}, QuizReviewRequest)
    assert len(result.value.userAnswers) == 10


def test_nested_violations_are_located(answer_set):
    answers = answer_set()
    answers[3] = {**answers[3], "userAnswer": [7]}
    answers[8] = {**answers[8], "possibleAnswers": ["only one"]}
    result = validate({"userAnswers": answers}, QuizReviewRequest)
    assert fields_of(result) == {"userAnswers.3.userAnswer.0", "userAnswers.8.possibleAnswers"}


# ── Reflection ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize("length, ok", [(99, False), (100, True), (1000, True), (1001, False)])
def test_reflection_length(length, ok):
    payload = {
        "score": 100,
        "correctAnswers": 10,
        "reflection": "r" * length,
        "questionReviews": [{"questionNum": i, "isCorrect": True} for i in range(1, 11)],
    }
    result = validate(payload, ReviewQuizResponse)
    if ok:
        assert isinstance(result, Validated)
    else:
        assert fields_of(result) == {"reflection"}
