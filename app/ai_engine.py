"""
QuizMaster — AI Engine
=======================
Content-generation collaborator. Handles all interactions with AI providers
(Groq + Gemini) for:
  1. Subject / sub-subject verification
  2. Question generation (10 MCQ, 1-4 correct options each)
  3. Reflection paragraphs for reviewed quizzes

Features:
  - Multi-provider hybrid call with automatic failover
  - Robust JSON extraction
  - Generation retries: strict prompt first, simplified prompt afterwards
  - Generated sets are checked by the input validator before use
"""

import json
import re
import logging
import asyncio
from typing import Any, Dict, List, Optional, Sequence

import google.generativeai as genai
from groq import AsyncGroq

from app.core.config import settings
from app.core.errors import ContentGenerationError, InsufficientQuestionsError
from app.schemas.quiz import (
    QUIZ_LENGTH,
    DifficultyLevel,
    Question,
    SubjectVerdict,
    SubSubjectVerdict,
    UserAnswer,
)
from app.scoring import ReflectionFacts, is_answer_correct
from app.services.feedback import fallback_reflection
from app.validation import ValidationFailure, validate

logger = logging.getLogger(__name__)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CLIENT INITIALIZATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

logger.info(f"[AI-ENGINE] Provider mode: {settings.AI_PROVIDER}")

groq_client: Optional[AsyncGroq] = None
if settings.GROQ_API_KEY:
    groq_client = AsyncGroq(api_key=settings.GROQ_API_KEY)
    logger.info("[AI-ENGINE] ✓ Groq client ready")
else:
    logger.warning("[AI-ENGINE] ✗ Groq API key missing")

if settings.GOOGLE_API_KEY:
    genai.configure(api_key=settings.GOOGLE_API_KEY, transport="rest")
    logger.info("[AI-ENGINE] ✓ Gemini client ready")
else:
    logger.warning("[AI-ENGINE] ✗ Google API key missing")


FALLBACK_SUBJECTS = ["Mathematics", "Science", "History", "Literature", "Computer Science"]
SUGGESTION_COUNT = 5

DIFFICULTY_GUIDELINES = {
    DifficultyLevel.easy: "Basic concepts, definitions, and simple applications. Difficulty 1-4.",
    DifficultyLevel.intermediate: "Moderate complexity, analysis, and problem-solving. Difficulty 4-7.",
    DifficultyLevel.hard: "Advanced concepts, synthesis, and complex reasoning. Difficulty 7-10.",
}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SYSTEM PROMPTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_STRICT_JSON = "Output ONLY valid JSON — no markdown fences, no commentary.\n"

SUBJECT_SYSTEM_PROMPT = (
    "You are an educational expert specializing in curriculum and subject matter validation.\n"
    "Verify if subjects are valid for educational quiz generation and suggest alternatives "
    "when needed. Be strict but helpful. Only accept well-defined, educational subjects. "
    "Never approve illegal subjects; politely refuse them.\n" + _STRICT_JSON
)

QUESTION_SYSTEM_PROMPT = (
    "You are an expert quiz creator specializing in educational assessment.\n"
    "Create engaging, clear, and pedagogically sound multiple-choice questions that test "
    "understanding, not just memorization.\n" + _STRICT_JSON
)

SIMPLIFIED_SYSTEM_PROMPT = (
    "You are a quiz creator. Create multiple-choice questions.\n" + _STRICT_JSON
)

REFLECTION_SYSTEM_PROMPT = (
    "You are an encouraging educational coach providing personalized feedback.\n"
    "Analyze quiz performance thoughtfully and provide constructive, motivating feedback. "
    "Focus on both achievements and areas for improvement. Be specific and actionable.\n"
    "Reply with plain prose only: one paragraph, no headings, no lists."
)


def _subject_prompt(subject: str) -> str:
    return (
        f'Validate if "{subject}" is a valid educational subject for quiz generation.\n\n'
        "Rules:\n"
        "1. Accept well-defined academic subjects (e.g., Mathematics, Physics, History)\n"
        "2. Accept professional/technical subjects (e.g., Programming, Marketing, Medicine)\n"
        "3. Accept skill-based subjects (e.g., Critical Thinking, Public Speaking)\n"
        "4. Reject vague, inappropriate, or non-educational topics\n"
        "5. If valid, provide the properly capitalized/normalized form\n"
        "6. If invalid, suggest exactly 5 related valid subjects\n\n"
        "JSON schema:\n"
        '{"isValid": boolean, "normalizedSubject": "string or null", '
        '"suggestions": ["exactly 5 subject suggestions"], "reasoning": "brief explanation"}'
    )


def _sub_subject_prompt(subject: str, sub_subject: str) -> str:
    return (
        f'Determine if "{sub_subject}" is a valid sub-topic of "{subject}".\n\n'
        "Rules:\n"
        "1. The sub-subject must be directly related to the main subject\n"
        "2. It should be a specific topic within the broader subject area\n"
        "3. It should be appropriate for educational quiz generation\n"
        "4. If valid, provide the properly formatted version\n"
        "5. If invalid, suggest up to 5 related sub-topics for the main subject\n\n"
        "JSON schema:\n"
        '{"isValid": boolean, "normalizedSubSubject": "string or null", '
        '"suggestions": ["0-5 sub-topic suggestions"], "reasoning": "brief explanation"}'
    )


def _question_prompt(subject: str, sub_subjects: Sequence[str], level: DifficultyLevel) -> str:
    sub_topics = ", ".join(sub_subjects) if sub_subjects else "General topics"
    return (
        f'Generate {QUIZ_LENGTH} multiple-choice questions for the subject "{subject}".\n\n'
        f"Sub-topics to cover: {sub_topics}\n"
        f"Difficulty Level: {level.value} - {DIFFICULTY_GUIDELINES[level]}\n\n"
        "Requirements:\n"
        "1. Each question must have exactly 4 answer options\n"
        "2. Questions can have multiple correct answers (indices 0-3)\n"
        "3. Mix question types: factual, conceptual, application, and analytical\n"
        "4. Question text must be 10-500 characters\n"
        "5. Cover different aspects of the subject/sub-topics\n\n"
        "JSON schema:\n"
        '{"questions": [{"question": "string", "possibleAnswers": ["A", "B", "C", "D"], '
        '"correctAnswer": [0], "explanation": "string", "topic": "string"}]}\n'
        f"Exactly {QUIZ_LENGTH} questions."
    )


def _simplified_question_prompt(subject: str, sub_subjects: Sequence[str], level: DifficultyLevel) -> str:
    sub_topics = ", ".join(sub_subjects) if sub_subjects else "General topics"
    return (
        f"Subject: {subject}\nTopics: {sub_topics}\nLevel: {level.value}\n\n"
        "Return JSON with this structure:\n"
        '{"questions": [{"question": "What is 2+2?", "possibleAnswers": ["3", "4", "5", "6"], '
        '"correctAnswer": [1]}]}\n'
        f"Create {QUIZ_LENGTH} questions following this exact format."
    )


def _reflection_prompt(facts: ReflectionFacts, answers: Sequence[UserAnswer]) -> str:
    # Verdict per answer, not per questionNum: numbers may repeat on review
    graded = [(a, is_answer_correct(a)) for a in sorted(answers, key=lambda a: a.questionNum)]
    correct_nums = [a.questionNum for a, ok in graded if ok]
    incorrect_nums = [a.questionNum for a, ok in graded if not ok]
    details = [
        {
            "questionNum": a.questionNum,
            "question": a.question,
            "possibleAnswers": a.possibleAnswers,
            "correctAnswer": a.correctAnswer,
            "userAnswer": a.userAnswer,
            "isCorrect": ok,
        }
        for a, ok in graded
    ]
    return (
        "Generate a personalized reflection paragraph for a quiz taker.\n\n"
        f"Score: {facts.score}% ({facts.correct_answers}/{facts.total_questions} correct)\n"
        f"Answered correctly: {', '.join(f'Q{n}' for n in correct_nums) or 'none'}\n"
        f"Answered incorrectly: {', '.join(f'Q{n}' for n in incorrect_nums) or 'none'}\n\n"
        f"Detailed results:\n{json.dumps(details, indent=2)}\n\n"
        "Write 60-150 words (between 100 and 900 characters) that acknowledge the "
        "performance level, highlight strengths, identify patterns in the mistakes, and "
        "give specific study recommendations in a positive, constructive tone."
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# JSON RECOVERY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def clean_and_parse_json(raw_text: str) -> Dict[str, Any]:
    """
    Robust JSON extractor:
    1. Strip markdown code fences (```json ... ```)
    2. Extract first { ... } block
    3. Parse with json.loads, require a JSON object
    Raises ValueError on failure with diagnostic info.
    """
    if not raw_text or not raw_text.strip():
        raise ValueError("Empty AI response received")

    cleaned = raw_text.strip()

    # Strategy 1: Remove ```json ... ``` wrapper
    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?\s*```", cleaned, re.DOTALL)
    if fence_match:
        cleaned = fence_match.group(1).strip()

    # Strategy 2: Find the first { ... } block (greedy from first { to last })
    if not cleaned.startswith("{"):
        brace_match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if brace_match:
            cleaned = brace_match.group(0)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse failed. Raw (first 500 chars): {raw_text[:500]}")
        raise ValueError(f"AI returned invalid JSON: {e}")

    if not isinstance(parsed, dict):
        raise ValueError(f"AI returned JSON {type(parsed).__name__}, expected an object")
    return parsed


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PROVIDER CALLS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def _call_groq(system_prompt: str, user_prompt: str, json_mode: bool = True) -> str:
    """Call Groq (Llama 3), JSON mode unless asked for prose."""
    if not groq_client:
        raise ValueError("Groq API Key missing")

    logger.info(f"[AI-ENGINE] Calling Groq ({settings.GROQ_MODEL})...")
    completion = await groq_client.chat.completions.create(
        model=settings.GROQ_MODEL,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        response_format={"type": "json_object"} if json_mode else None,
        temperature=0 if json_mode else 0.6,
        max_tokens=4000,
    )
    result = completion.choices[0].message.content
    logger.info("[AI-ENGINE] ✓ Groq call succeeded")
    return result


async def _call_gemini(system_prompt: str, user_prompt: str, json_mode: bool = True) -> str:
    """Call Gemini, JSON mode unless asked for prose."""
    if not settings.GOOGLE_API_KEY:
        raise ValueError("Google API Key missing")

    logger.info(f"[AI-ENGINE] Calling Gemini ({settings.GEMINI_MODEL})...")
    config: Dict[str, Any] = {"temperature": 0 if json_mode else 0.6}
    if json_mode:
        config["response_mime_type"] = "application/json"

    model = genai.GenerativeModel(model_name=settings.GEMINI_MODEL, generation_config=config)
    full_prompt = f"{system_prompt}\n\nUser Task:\n{user_prompt}"
    response = await asyncio.to_thread(model.generate_content, full_prompt)
    logger.info("[AI-ENGINE] ✓ Gemini call succeeded")
    return response.text


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# HYBRID CALL WITH FAILOVER
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def _hybrid_call(
    system_prompt: str,
    user_prompt: str,
    primary: str = "groq",
    json_mode: bool = True,
) -> str:
    """
    Execute AI call with automatic failover.
    In 'hybrid' mode: tries primary first, then the other.
    """
    provider = settings.AI_PROVIDER

    if provider == "groq":
        callers = [("Groq", _call_groq)]
    elif provider == "gemini":
        callers = [("Gemini", _call_gemini)]
    else:  # hybrid
        if primary == "groq":
            callers = [("Groq", _call_groq), ("Gemini", _call_gemini)]
        else:
            callers = [("Gemini", _call_gemini), ("Groq", _call_groq)]

    last_error = None
    for name, caller in callers:
        try:
            return await caller(system_prompt, user_prompt, json_mode)
        except Exception as e:
            last_error = e
            logger.warning(f"[AI-ENGINE] {name} failed: {str(e)[:200]}. Trying next...")

    raise RuntimeError(f"All AI providers failed. Last error: {last_error}")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# VERIFICATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(s).strip() for s in value if str(s).strip()]


async def verify_subject(subject: str) -> SubjectVerdict:
    """Ask the model whether `subject` is quizzable. Always yields 5 suggestions."""
    logger.info(f"[VERIFY] Subject: {subject}")
    try:
        raw = await _hybrid_call(SUBJECT_SYSTEM_PROMPT, _subject_prompt(subject), primary="groq")
        parsed = clean_and_parse_json(raw)
        verdict = SubjectVerdict(
            is_valid=bool(parsed.get("isValid")),
            normalized=parsed.get("normalizedSubject") or None,
            suggestions=_string_list(parsed.get("suggestions")),
            reasoning=parsed.get("reasoning"),
        )
    except (ValueError, RuntimeError) as e:
        logger.warning(f"[VERIFY] Subject validation unavailable: {e}")
        return SubjectVerdict(
            is_valid=False,
            suggestions=list(FALLBACK_SUBJECTS),
            reasoning="Unable to validate subject at this time",
        )

    if len(verdict.suggestions) != SUGGESTION_COUNT:
        verdict = verdict.model_copy(update={"suggestions": list(FALLBACK_SUBJECTS)})
    return verdict


async def verify_sub_subject(subject: str, sub_subject: str) -> SubSubjectVerdict:
    """Ask the model whether `sub_subject` belongs to `subject`. At most 5 suggestions."""
    logger.info(f"[VERIFY] Sub-subject: {sub_subject} (subject: {subject})")
    try:
        raw = await _hybrid_call(
            SUBJECT_SYSTEM_PROMPT, _sub_subject_prompt(subject, sub_subject), primary="groq"
        )
        parsed = clean_and_parse_json(raw)
        return SubSubjectVerdict(
            is_valid=bool(parsed.get("isValid")),
            normalized=parsed.get("normalizedSubSubject") or None,
            suggestions=_string_list(parsed.get("suggestions"))[:SUGGESTION_COUNT],
            reasoning=parsed.get("reasoning"),
        )
    except (ValueError, RuntimeError) as e:
        logger.warning(f"[VERIFY] Sub-subject validation unavailable: {e}")
        return SubSubjectVerdict(
            is_valid=False,
            suggestions=[],
            reasoning="Unable to validate sub-subject at this time",
        )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# QUESTION GENERATION WITH RETRY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _number_candidates(parsed: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Pull the question list out of a parsed reply and number it 1..N in order."""
    candidates = parsed.get("questions")
    if not isinstance(candidates, list):
        raise ValueError("AI reply has no 'questions' list")
    return [
        {**q, "questionNum": i}
        for i, q in enumerate((q for q in candidates if isinstance(q, dict)), start=1)
    ]


async def generate_questions(
    subject: str,
    sub_subjects: Sequence[str],
    level: DifficultyLevel,
) -> List[Question]:
    """
    Generate exactly QUIZ_LENGTH validated questions.
    Raises InsufficientQuestionsError when only a short, well-formed set could be
    produced, ContentGenerationError when nothing usable came back.
    """
    logger.info(
        f"[QUIZ] Generating - Subject: {subject}, Level: {level.value}, "
        f"Sub-subjects: {', '.join(sub_subjects) or 'None'}"
    )

    best_count = 0
    attempts: List[str] = []

    for attempt in range(1, settings.AI_MAX_RETRIES + 1):
        if attempt == 1:
            system_prompt = QUESTION_SYSTEM_PROMPT
            user_prompt = _question_prompt(subject, sub_subjects, level)
        else:
            system_prompt = SIMPLIFIED_SYSTEM_PROMPT
            user_prompt = _simplified_question_prompt(subject, sub_subjects, level)

        try:
            raw = await _hybrid_call(system_prompt, user_prompt, primary="groq")
            numbered = _number_candidates(clean_and_parse_json(raw))
        except (ValueError, RuntimeError) as e:
            logger.warning(f"[QUIZ] Attempt {attempt}/{settings.AI_MAX_RETRIES} failed: {e}")
            attempts.append(f"Attempt {attempt}: {e}")
            continue

        if len(numbered) > QUIZ_LENGTH:
            attempts.append(f"Attempt {attempt}: Generated {len(numbered)}/{QUIZ_LENGTH} questions")
            logger.warning(f"[QUIZ] Attempt {attempt}: too many questions ({len(numbered)})")
            continue

        result = validate(numbered, List[Question])
        if isinstance(result, ValidationFailure):
            attempts.append(f"Attempt {attempt}: Invalid question format ({len(result.violations)} violations)")
            logger.warning(
                f"[QUIZ] Attempt {attempt}: invalid questions - "
                + "; ".join(f"{v.field}: {v.message}" for v in result.violations[:5])
            )
            continue

        questions = result.value
        if len(questions) == QUIZ_LENGTH:
            logger.info(f"[QUIZ] ✓ Generated {len(questions)} questions (attempt {attempt})")
            return questions

        best_count = max(best_count, len(questions))
        attempts.append(f"Attempt {attempt}: Generated {len(questions)}/{QUIZ_LENGTH} questions")
        logger.warning(f"[QUIZ] Partial result on attempt {attempt}: {len(questions)}/{QUIZ_LENGTH}")

    if best_count > 0:
        raise InsufficientQuestionsError(QUIZ_LENGTH, best_count, attempts)

    raise ContentGenerationError(
        "Unable to generate quiz at this time. Please try again with different parameters.",
        details={
            "attempts": attempts,
            "suggestion": "Try simplifying your request or choose a different subject/topic combination.",
        },
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REFLECTION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

REFLECTION_MIN_CHARS = 100
REFLECTION_MAX_CHARS = 1000


async def compose_reflection(facts: ReflectionFacts, answers: Sequence[UserAnswer]) -> str:
    """Personalised reflection paragraph; templated text if the providers can't deliver one."""
    try:
        text = await _hybrid_call(
            REFLECTION_SYSTEM_PROMPT,
            _reflection_prompt(facts, answers),
            primary="gemini",
            json_mode=False,
        )
    except (ValueError, RuntimeError) as e:
        logger.warning(f"[REVIEW] Reflection unavailable, using fallback: {e}")
        return fallback_reflection(facts)

    text = (text or "").strip()
    if not REFLECTION_MIN_CHARS <= len(text) <= REFLECTION_MAX_CHARS:
        logger.warning(f"[REVIEW] Reflection length {len(text)} out of range, using fallback")
        return fallback_reflection(facts)
    return text
