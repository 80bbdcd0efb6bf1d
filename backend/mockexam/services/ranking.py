"""Re-rank pass: recompute the derived rank of every completed attempt of a paper."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from mockexam.core.logging import get_logger
from mockexam.models.attempt import TestAttempt
from mockexam.models.test_paper import TestPaper
from mockexam.scoring import rank_attempts

logger = get_logger(__name__)


def rerank_test_paper(db: Session, test_paper_id: UUID) -> tuple[int, int]:
    """
    Recompute ranks for all completed attempts of a test paper.

    Only the rank column is touched; marks and percentages are never rewritten.

    Returns:
        (number of ranked attempts, number of attempts whose rank changed)
    """
    rows = db.execute(
        select(TestAttempt.id, TestAttempt.percentage, TestAttempt.submitted_at, TestAttempt.rank)
        .where(
            TestAttempt.test_paper_id == test_paper_id,
            TestAttempt.is_completed.is_(True),
            TestAttempt.percentage.is_not(None),
        )
    ).all()

    current = {row.id: row.rank for row in rows}
    ranked = rank_attempts((row.id, row.percentage, row.submitted_at) for row in rows)

    updated = 0
    for attempt_id, rank in ranked:
        if current[attempt_id] == rank:
            continue
        db.execute(
            update(TestAttempt)
            .where(TestAttempt.id == attempt_id)
            .values(rank=rank)
            .execution_options(synchronize_session=False)
        )
        updated += 1
    db.commit()

    logger.info(
        "Test paper re-ranked",
        extra={
            "event": "rerank_completed",
            "test_paper_id": str(test_paper_id),
            "ranked": len(ranked),
            "updated": updated,
        },
    )
    return len(ranked), updated


def rerank_all(db: Session) -> dict[UUID, tuple[int, int]]:
    """Re-rank every test paper that has completed attempts."""
    paper_ids = db.execute(
        select(TestPaper.id)
        .join(TestAttempt, TestAttempt.test_paper_id == TestPaper.id)
        .where(TestAttempt.is_completed.is_(True))
        .distinct()
    ).scalars().all()
    return {paper_id: rerank_test_paper(db, paper_id) for paper_id in paper_ids}
