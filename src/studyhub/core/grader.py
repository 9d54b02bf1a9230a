"""Quiz grading module.

Responsibilities:
- Convert stored question rows into typed QuizQuestion records
- Grade submitted answers per question type (MC, TF, short answer)
- Sum earned and possible points into a GradeSummary

Grading is deterministic: exact text match for multiple choice and
true/false, case/whitespace-insensitive match for short answer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

import structlog

logger = structlog.get_logger(__name__)

# =============================================================================
# TYPES
# =============================================================================


class QuestionType(str, Enum):
    """How an answer to a question is graded."""

    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"


class GradingError(Exception):
    """Stored question data cannot be graded."""

    pass


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class QuestionOption:
    """One choice of a multiple-choice question."""

    option_text: str
    is_correct: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuestionOption:
        return cls(
            option_text=str(data.get("option_text", "")),
            is_correct=bool(data.get("is_correct", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"option_text": self.option_text, "is_correct": self.is_correct}


@dataclass
class QuizQuestion:
    """A quiz question as needed for grading."""

    question_id: str
    question_type: QuestionType
    points: int
    correct_answer: str | None = None
    options: list[QuestionOption] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> QuizQuestion:
        """Build from a quiz_questions row.

        Raises:
            GradingError: If the row's type is not a known question type
        """
        try:
            question_type = QuestionType(row.get("type"))
        except ValueError as exc:
            raise GradingError(
                f"Question {row.get('id')} has unknown type {row.get('type')!r}"
            ) from exc

        correct = row.get("correct_answer")
        return cls(
            question_id=str(row["id"]),
            question_type=question_type,
            points=int(row.get("points") or 0),
            correct_answer=None if correct is None else str(correct),
            options=[QuestionOption.from_dict(o) for o in row.get("options") or []],
        )

    @property
    def correct_option(self) -> QuestionOption | None:
        """The first option flagged correct, if any."""
        for option in self.options:
            if option.is_correct:
                return option
        return None


@dataclass
class SubmittedAnswer:
    """One answer from a submission."""

    question_id: str
    answer: Any

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubmittedAnswer:
        question_id = data.get("questionId", data.get("question_id"))
        return cls(question_id=str(question_id), answer=data.get("answer"))


@dataclass
class AnswerGrade:
    """Grade for a single submitted answer."""

    question_id: str
    answer: Any
    is_correct: bool
    points_earned: int
    points_possible: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "question_id": self.question_id,
            "answer": self.answer,
            "is_correct": self.is_correct,
            "points_earned": self.points_earned,
            "points_possible": self.points_possible,
        }


@dataclass
class GradeSummary:
    """Grades for a whole submission."""

    results: list[AnswerGrade]

    @property
    def total_score(self) -> int:
        return sum(r.points_earned for r in self.results)

    @property
    def total_points(self) -> int:
        return sum(r.points_possible for r in self.results)

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.results if r.is_correct)

    @property
    def percentage(self) -> float:
        if self.total_points == 0:
            return 0.0
        return round(self.total_score / self.total_points * 100, 2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "score": self.total_score,
            "total_points": self.total_points,
            "percentage": self.percentage,
            "correct_count": self.correct_count,
            "results": [r.to_dict() for r in self.results],
        }


# =============================================================================
# GRADING FUNCTIONS
# =============================================================================


def _answer_text(answer: Any) -> str | None:
    """Normalize a raw JSON answer to text (None if absent)."""
    if answer is None:
        return None
    if isinstance(answer, bool):
        return "true" if answer else "false"
    return str(answer)


def _grade_multiple_choice(question: QuizQuestion, answer: str | None) -> bool:
    correct = question.correct_option
    if correct is None or answer is None:
        return False
    return answer == correct.option_text


def _grade_true_false(question: QuizQuestion, answer: str | None) -> bool:
    if question.correct_answer is None or answer is None:
        return False
    return answer == question.correct_answer


def _grade_short_answer(question: QuizQuestion, answer: str | None) -> bool:
    if question.correct_answer is None or answer is None:
        return False
    return answer.strip().casefold() == question.correct_answer.strip().casefold()


_GRADERS: dict[QuestionType, Callable[[QuizQuestion, str | None], bool]] = {
    QuestionType.MULTIPLE_CHOICE: _grade_multiple_choice,
    QuestionType.TRUE_FALSE: _grade_true_false,
    QuestionType.SHORT_ANSWER: _grade_short_answer,
}


def grade_answer(question: QuizQuestion, answer: Any) -> bool:
    """Whether `answer` is correct for `question`."""
    return _GRADERS[question.question_type](question, _answer_text(answer))


def grade_submission(
    questions: Iterable[QuizQuestion],
    answers: Sequence[SubmittedAnswer],
) -> GradeSummary:
    """Grade every submitted answer against the quiz questions.

    Answers whose question_id matches no question are marked incorrect
    and contribute nothing to either score or possible points. Questions
    left unanswered do not count toward possible points. Each question
    is graded once: repeated answers to an already graded question are
    treated like unmatched ones.

    Args:
        questions: The quiz's questions
        answers: Submitted answers in submission order

    Returns:
        GradeSummary with one AnswerGrade per submitted answer
    """
    by_id = {q.question_id: q for q in questions}
    results: list[AnswerGrade] = []
    graded: set[str] = set()
    unmatched = 0

    for submitted in answers:
        question = by_id.get(submitted.question_id)
        if question is None or question.question_id in graded:
            unmatched += 1
            results.append(
                AnswerGrade(
                    question_id=submitted.question_id,
                    answer=submitted.answer,
                    is_correct=False,
                    points_earned=0,
                    points_possible=0,
                )
            )
            continue

        graded.add(question.question_id)
        is_correct = grade_answer(question, submitted.answer)
        results.append(
            AnswerGrade(
                question_id=question.question_id,
                answer=submitted.answer,
                is_correct=is_correct,
                points_earned=question.points if is_correct else 0,
                points_possible=question.points,
            )
        )

    summary = GradeSummary(results=results)
    logger.debug(
        "grading.completed",
        answers=len(answers),
        unmatched=unmatched,
        score=summary.total_score,
        total_points=summary.total_points,
    )
    return summary
