"""Scoring engine and ranking."""

from mockexam.scoring.engine import (
    AnswerGrade,
    OptionKey,
    PaperKey,
    QuestionKey,
    ScoreSummary,
    ScoringPolicy,
    all_or_nothing,
    compute_percentage,
    grade_answers,
    negative_marking,
    score_submission,
)
from mockexam.scoring.ranker import rank_among, rank_attempts

__all__ = [
    "AnswerGrade",
    "OptionKey",
    "PaperKey",
    "QuestionKey",
    "ScoreSummary",
    "ScoringPolicy",
    "all_or_nothing",
    "compute_percentage",
    "grade_answers",
    "negative_marking",
    "rank_among",
    "rank_attempts",
    "score_submission",
]
