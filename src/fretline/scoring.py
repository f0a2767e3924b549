"""Hit rating and score aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from fretline.config import (
    GREAT_POINTS,
    GREAT_WINDOW_MS,
    OK_POINTS,
    OK_WINDOW_MS,
    PERFECT_POINTS,
    PERFECT_WINDOW_MS,
)
from fretline.models import Rating, ScoreEvent, ScoreSummary

# (rating, max abs delta in ms, points), first match wins
_THRESHOLDS: tuple[tuple[Rating, float, int], ...] = (
    (Rating.PERFECT, PERFECT_WINDOW_MS, PERFECT_POINTS),
    (Rating.GREAT, GREAT_WINDOW_MS, GREAT_POINTS),
    (Rating.OK, OK_WINDOW_MS, OK_POINTS),
)


@dataclass(frozen=True)
class RatedHit:
    rating: Rating
    points: int


def rate_hit(delta_ms: float) -> RatedHit:
    """Grade a timing delta; early and late are treated alike."""
    abs_delta = abs(delta_ms)
    for rating, max_ms, points in _THRESHOLDS:
        if abs_delta <= max_ms:
            return RatedHit(rating, points)
    return RatedHit(Rating.MISS, 0)


def score_hit(target_id: str, delta_ms: float) -> ScoreEvent:
    rated = rate_hit(delta_ms)
    return ScoreEvent(target_id=target_id, rating=rated.rating, delta_ms=delta_ms, points=rated.points)


def score_miss(target_id: str, delta_ms: float) -> ScoreEvent:
    return ScoreEvent(target_id=target_id, rating=Rating.MISS, delta_ms=delta_ms, points=0)


def summarize_scores(events: Iterable[ScoreEvent]) -> ScoreSummary:
    """Aggregate an ordered event log.

    The streak counts consecutive non-miss events and resets on a miss;
    the average reaction time only looks at non-miss events.
    """
    summary = ScoreSummary()
    streak = 0
    reaction_total = 0.0
    reaction_count = 0

    for event in events:
        summary.hit_distribution[event.rating] += 1
        summary.total_score += event.points
        if event.rating is Rating.MISS:
            streak = 0
        else:
            streak += 1
            summary.longest_streak = max(summary.longest_streak, streak)
            reaction_total += event.delta_ms
            reaction_count += 1

    if reaction_count:
        summary.average_reaction_ms = reaction_total / reaction_count
    return summary
