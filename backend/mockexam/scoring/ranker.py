"""Deterministic ranking of completed attempts by percentage.

Tie-break: among equal percentages the earlier submission ranks higher, then
attempt id for full determinism. A freshly submitted attempt is always the
latest, so it ranks below every prior attempt with the same percentage.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps read back from backends that drop tzinfo."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def rank_among(percentage: float, prior_percentages: Iterable[float]) -> int:
    """1-based rank of a new percentage among prior completed percentages (descending)."""
    return 1 + sum(1 for p in prior_percentages if p >= percentage)


def rank_attempts(
    items: Iterable[tuple[Any, float, datetime | None]],
) -> list[tuple[Any, int]]:
    """
    Rank (attempt_id, percentage, submitted_at) tuples; 1 = best.

    Returns:
        List of (attempt_id, rank) ordered best first.
    """

    def sort_key(item: tuple[Any, float, datetime | None]):
        attempt_id, pct, submitted_at = item
        # Missing timestamps sort last among equals
        ts = as_utc(submitted_at).timestamp() if submitted_at is not None else float("inf")
        return (-pct, ts, str(attempt_id))

    ordered = sorted(items, key=sort_key)
    return [(attempt_id, idx + 1) for idx, (attempt_id, _, _) in enumerate(ordered)]
