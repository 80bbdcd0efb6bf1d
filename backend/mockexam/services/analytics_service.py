"""Learner dashboard statistics and admin analytics."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import case, distinct, func, select
from sqlalchemy.orm import Session, selectinload

from mockexam.models.attempt import Answer, TestAttempt
from mockexam.models.exam import Exam, Subject
from mockexam.models.test_paper import Question, TestPaper
from mockexam.models.user import User

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
TOP_EXAMS_LIMIT = 5
RECENT_TESTS_LIMIT = 5


def _pct(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


# ============================================================================
# Learner dashboard
# ============================================================================


def get_dashboard_stats(db: Session, user: User) -> dict:
    """Aggregate the learner's completed attempts."""
    attempts = list(
        db.execute(
            select(TestAttempt)
            .where(TestAttempt.user_id == user.id, TestAttempt.is_completed.is_(True))
            .options(selectinload(TestAttempt.test_paper).selectinload(TestPaper.subject))
            .order_by(TestAttempt.submitted_at.desc())
        ).scalars()
    )

    total_tests = len(attempts)
    percentages = [a.percentage or 0.0 for a in attempts]
    average_score = round(sum(percentages) / total_tests) if total_tests else 0
    best_score = max(percentages) if percentages else 0.0
    total_time_spent = round(sum(a.time_spent or 0 for a in attempts) / 60)

    # Answer correctness per subject in one grouped query
    rows = db.execute(
        select(
            Subject.name,
            func.count(Answer.id),
            func.sum(case((Answer.is_correct.is_(True), 1), else_=0)),
        )
        .select_from(Answer)
        .join(TestAttempt, Answer.attempt_id == TestAttempt.id)
        .join(TestPaper, TestAttempt.test_paper_id == TestPaper.id)
        .join(Subject, TestPaper.subject_id == Subject.id)
        .where(TestAttempt.user_id == user.id, TestAttempt.is_completed.is_(True))
        .group_by(Subject.name)
    ).all()
    answer_counts = {name: (int(total), int(correct or 0)) for name, total, correct in rows}
    all_answers = sum(t for t, _ in answer_counts.values())
    all_correct = sum(c for _, c in answer_counts.values())

    per_subject: dict[str, list[float]] = {}
    for attempt in attempts:
        per_subject.setdefault(attempt.test_paper.subject.name, []).append(attempt.percentage or 0.0)

    subject_stats = []
    for name, scores in per_subject.items():
        total, correct = answer_counts.get(name, (0, 0))
        subject_stats.append(
            {
                "subject": name,
                "tests": len(scores),
                "average_score": round(sum(scores) / len(scores)),
                "accuracy": _pct(correct, total),
            }
        )

    return {
        "total_tests": total_tests,
        "average_score": average_score,
        "best_score": best_score,
        "total_time_spent": total_time_spent,
        "accuracy": _pct(all_correct, all_answers),
        "recent_tests": [
            {
                "id": a.id,
                "title": a.test_paper.title,
                "score": a.obtained_marks or 0.0,
                "percentage": a.percentage or 0.0,
                "completed_at": a.submitted_at or a.started_at,
            }
            for a in attempts[:RECENT_TESTS_LIMIT]
        ],
        "subject_stats": subject_stats,
    }


# ============================================================================
# Admin
# ============================================================================


def get_admin_stats(db: Session) -> dict:
    """Platform-wide totals."""
    return {
        "total_users": db.scalar(select(func.count(User.id))) or 0,
        "total_exams": db.scalar(select(func.count(Exam.id))) or 0,
        "total_test_papers": db.scalar(select(func.count(TestPaper.id))) or 0,
        "total_questions": db.scalar(select(func.count(Question.id))) or 0,
        "total_attempts": db.scalar(select(func.count(TestAttempt.id))) or 0,
    }


def _performance_rows(db: Session, since: datetime, group_cols: list) -> list:
    completed = case((TestAttempt.is_completed.is_(True), 1), else_=0)
    return db.execute(
        select(
            *group_cols,
            func.count(TestAttempt.id).label("attempts"),
            func.sum(completed).label("completed"),
            func.avg(TestAttempt.percentage).label("average_score"),
        )
        .select_from(TestAttempt)
        .join(TestPaper, TestAttempt.test_paper_id == TestPaper.id)
        .join(Subject, TestPaper.subject_id == Subject.id)
        .join(Exam, Subject.exam_id == Exam.id)
        .where(TestAttempt.started_at >= since)
        .group_by(*group_cols)
        .order_by(func.count(TestAttempt.id).desc())
    ).all()


def get_analytics_overview(db: Session, period: str = "30d", now: datetime | None = None) -> dict:
    """
    Platform analytics for a trailing period.

    Args:
        db: Database session
        period: One of 7d, 30d, 90d, 1y
        now: Reference time (defaults to current UTC time)
    """
    if period not in PERIOD_DAYS:
        raise ValueError(f"Unknown period: {period}")
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=PERIOD_DAYS[period])

    period_attempts = db.scalar(
        select(func.count(TestAttempt.id)).where(TestAttempt.started_at >= since)
    ) or 0
    period_completed = db.scalar(
        select(func.count(TestAttempt.id)).where(
            TestAttempt.started_at >= since, TestAttempt.is_completed.is_(True)
        )
    ) or 0
    average_score = db.scalar(
        select(func.avg(TestAttempt.percentage)).where(
            TestAttempt.started_at >= since, TestAttempt.is_completed.is_(True)
        )
    )
    active_users = db.scalar(
        select(func.count(distinct(TestAttempt.user_id))).where(TestAttempt.started_at >= since)
    ) or 0
    new_users = db.scalar(select(func.count(User.id)).where(User.created_at >= since)) or 0

    top_exams = [
        {
            "id": row.id,
            "name": row.name,
            "category": row.category,
            "attempts": row.attempts,
            "average_score": round(float(row.average_score or 0.0), 2),
            "completion_rate": float(_pct(int(row.completed or 0), row.attempts)),
        }
        for row in _performance_rows(db, since, [Exam.id, Exam.name, Exam.category])[:TOP_EXAMS_LIMIT]
    ]
    category_performance = [
        {
            "category": row.category,
            "attempts": row.attempts,
            "average_score": round(float(row.average_score or 0.0), 2),
            "completion_rate": float(_pct(int(row.completed or 0), row.attempts)),
        }
        for row in _performance_rows(db, since, [Exam.category])
    ]

    return {
        **get_admin_stats(db),
        "period": period,
        "active_users": active_users,
        "new_users": new_users,
        "completion_rate": float(_pct(period_completed, period_attempts)),
        "average_score": round(float(average_score or 0.0), 2),
        "top_exams": top_exams,
        "category_performance": category_performance,
    }
