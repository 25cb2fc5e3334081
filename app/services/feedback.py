from typing import List, Sequence

from app.schemas.quiz import UserAnswer
from app.scoring import ReflectionFacts


def format_answer_indices(indices: Sequence[int], possible_answers: List[str]) -> str:
    """Render option indices as quoted option text: '"A"', '"A", "B" and "C"'."""
    if not indices:
        return "nothing"

    quoted = [f'"{possible_answers[i]}"' for i in indices]
    if len(quoted) == 1:
        return quoted[0]
    return f"{', '.join(quoted[:-1])} and {quoted[-1]}"


def explain_answer(answer: UserAnswer, is_correct: bool) -> str:
    """Short, deterministic explanation of a single verdict."""
    if is_correct:
        return f"Correct! You selected {format_answer_indices(answer.userAnswer, answer.possibleAnswers)}."

    correct_text = format_answer_indices(answer.correctAnswer, answer.possibleAnswers)
    user_text = (
        format_answer_indices(answer.userAnswer, answer.possibleAnswers)
        if answer.userAnswer
        else "no answer"
    )
    return f"Incorrect. You selected {user_text}, but the correct answer is {correct_text}."


def fallback_reflection(facts: ReflectionFacts) -> str:
    """Templated reflection used when no provider text is available."""
    score = facts.score
    summary = (
        f"You scored {score}% by correctly answering "
        f"{facts.correct_answers} out of {facts.total_questions} questions."
    )

    if score >= 80:
        return (
            f"Excellent work! {summary} Your strong performance demonstrates a solid "
            "understanding of the material. To further enhance your knowledge, consider "
            "exploring more advanced topics or practicing with harder difficulty levels. "
            "Keep up the great work!"
        )
    if score >= 60:
        return (
            f"Good effort! {summary} You're showing a decent grasp of the material, with "
            "room for improvement. Review the questions you missed and focus on "
            "understanding the underlying concepts. With more practice, you'll definitely "
            "improve your score!"
        )
    return (
        f"{summary} While this might not be the score you hoped for, remember that "
        "learning is a process. Take time to review the material, especially the topics "
        "you found challenging. Consider starting with easier difficulty levels to build "
        "confidence. Every quiz is a learning opportunity!"
    )
