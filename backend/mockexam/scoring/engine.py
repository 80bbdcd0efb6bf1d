"""Pure scoring engine: grades a submitted answer map against a paper's answer key.

No I/O and no shared state; safe to call concurrently. Malformed values never
raise: an unknown question is skipped, an unknown option earns zero.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from mockexam.scoring.ranker import rank_among

MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
TRUE_FALSE = "TRUE_FALSE"
AUTO_SCORABLE = frozenset({MULTIPLE_CHOICE, TRUE_FALSE})


@dataclass(frozen=True)
class OptionKey:
    id: UUID
    is_correct: bool


@dataclass(frozen=True)
class QuestionKey:
    id: UUID
    marks: float
    options: tuple[OptionKey, ...] = ()
    question_type: str = MULTIPLE_CHOICE

    @property
    def auto_scorable(self) -> bool:
        return self.question_type in AUTO_SCORABLE

    def option(self, option_id: Any) -> OptionKey | None:
        """Return the option with this id, or None if it is not one of ours."""
        for opt in self.options:
            if opt.id == option_id:
                return opt
        return None


@dataclass(frozen=True)
class PaperKey:
    """Answer key of a test paper: every question with its marks and options."""

    questions: tuple[QuestionKey, ...]
    _index: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {q.id: q for q in self.questions})

    def question(self, question_id: Any) -> QuestionKey | None:
        try:
            return self._index.get(question_id)
        except TypeError:
            # unhashable ids cannot be ours
            return None

    @property
    def total_marks(self) -> float:
        """Sum of every question's marks, answered or not."""
        return float(sum(q.marks for q in self.questions))


@dataclass(frozen=True)
class AnswerGrade:
    question_id: UUID
    selected_option_id: Any
    is_correct: bool
    marks_obtained: float


@dataclass(frozen=True)
class ScoreSummary:
    grades: tuple[AnswerGrade, ...]
    total_marks: float
    obtained_marks: float
    percentage: float
    rank: int


# (question, selected option or None) -> marks awarded
ScoringPolicy = Callable[[QuestionKey, OptionKey | None], float]


def all_or_nothing(question: QuestionKey, option: OptionKey | None) -> float:
    """Full marks for the correct option, zero otherwise."""
    if option is not None and option.is_correct:
        return float(question.marks)
    return 0.0


def negative_marking(fraction: float) -> ScoringPolicy:
    """Policy that deducts ``fraction`` of the question's marks for a wrong option.

    Unanswered questions and options foreign to the question still earn zero.
    """
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"fraction must be within [0, 1], got {fraction}")

    def policy(question: QuestionKey, option: OptionKey | None) -> float:
        if option is None:
            return 0.0
        if option.is_correct:
            return float(question.marks)
        return -fraction * float(question.marks)

    return policy


def compute_percentage(obtained: float, total: float) -> float:
    """round(obtained / total * 100, 2); 0.0 when the paper carries no marks."""
    if total <= 0:
        return 0.0
    return round(obtained / total * 100, 2)


def grade_answers(
    paper: PaperKey,
    submitted: Mapping[Any, Any],
    policy: ScoringPolicy = all_or_nothing,
) -> tuple[AnswerGrade, ...]:
    """Grade every submitted question that exists in the paper, in paper order."""
    grades: list[AnswerGrade] = []
    for question in paper.questions:
        if question.id not in submitted:
            continue
        selected = submitted[question.id]
        option = question.option(selected) if selected is not None else None

        if not question.auto_scorable:
            # Free-text questions await manual marking
            grades.append(AnswerGrade(question.id, selected, False, 0.0))
            continue

        is_correct = option is not None and option.is_correct
        grades.append(AnswerGrade(question.id, selected, is_correct, policy(question, option)))
    return tuple(grades)


def score_submission(
    paper: PaperKey,
    submitted: Mapping[Any, Any],
    prior_percentages: Iterable[float] = (),
    policy: ScoringPolicy = all_or_nothing,
) -> ScoreSummary:
    """
    Score one submission.

    Args:
        paper: Answer key of the test paper
        submitted: question id -> selected option id (or None); need not cover every question
        prior_percentages: Percentages of all other completed attempts of the paper
        policy: Marks awarded per (question, selected option)

    Returns:
        ScoreSummary with grades, totals, percentage and rank
    """
    grades = grade_answers(paper, submitted, policy)
    total = paper.total_marks
    obtained = float(sum(g.marks_obtained for g in grades))
    percentage = compute_percentage(obtained, total)
    return ScoreSummary(
        grades=grades,
        total_marks=total,
        obtained_marks=obtained,
        percentage=percentage,
        rank=rank_among(percentage, prior_percentages),
    )
