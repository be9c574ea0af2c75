"""Estimates whether a sequence of activity looks human-generated."""

from __future__ import annotations

import statistics
from collections import deque
from datetime import datetime, timedelta
from typing import Iterable

from .models import ActivityRecord, ActivityType, ActivityVerdict, HumanPatternVerdict, clamp_score

HISTORY_SIZE = 50
HISTORY_WINDOW = timedelta(minutes=10)
MIN_RECORDS = 4
SUSTAINED_INTERVAL_FACTOR = 2.0
IRREGULAR_TIMING_CV = 0.15
IRREGULAR_TIMING_BONUS = 50
TYPE_DIVERSITY_BONUS = 30
RICH_DIVERSITY_BONUS = 10
HUMAN_LIKE_MIN = 50


class ActivityHistory:
    """Bounded history of active ticks, oldest evicted first."""

    def __init__(self, size: int = HISTORY_SIZE) -> None:
        self._records: deque[ActivityRecord] = deque(maxlen=size)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[ActivityRecord]:
        return list(self._records)

    def recent(self, now: datetime, window: timedelta = HISTORY_WINDOW) -> list[ActivityRecord]:
        return [record for record in self._records if now - record.timestamp <= window]

    def add(self, verdict: ActivityVerdict, timestamp: datetime) -> None:
        if not verdict.is_active:
            return
        self._records.append(
            ActivityRecord(
                timestamp=timestamp,
                activity_type=verdict.activity_type,
                confidence=verdict.confidence_score,
            )
        )

    def clear(self) -> None:
        self._records.clear()


def analyze_human_pattern(
    records: Iterable[ActivityRecord], *, sample_interval: float = 2.0
) -> HumanPatternVerdict:
    """Score timing irregularity and activity-type diversity of a history.

    Activity seen on (nearly) every poll tick counts as sustained use, since
    polling itself makes such intervals look regular. Spaced-out bursts at
    near-constant intervals are what a jiggler produces. Short histories get
    the benefit of the doubt.
    """
    ordered = sorted(records, key=lambda record: record.timestamp)
    if len(ordered) < MIN_RECORDS:
        return HumanPatternVerdict(
            is_human_like=True,
            reasons=[f"Insufficient data ({len(ordered)} < {MIN_RECORDS} events)"],
        )

    score = 0
    reasons: list[str] = []

    intervals = [
        (later.timestamp - earlier.timestamp).total_seconds()
        for earlier, later in zip(ordered, ordered[1:])
    ]
    mean = statistics.fmean(intervals)
    if mean <= 0:
        reasons.append("All events share one timestamp")
    elif mean <= sample_interval * SUSTAINED_INTERVAL_FACTOR:
        score += IRREGULAR_TIMING_BONUS
        reasons.append(f"Sustained activity (mean interval {mean:.1f}s)")
    else:
        variation = statistics.pstdev(intervals) / mean
        if variation >= IRREGULAR_TIMING_CV:
            score += IRREGULAR_TIMING_BONUS
            reasons.append(f"Irregular timing (cv={variation:.2f})")
        else:
            reasons.append(f"Regular timing (cv={variation:.2f})")

    kinds = {record.activity_type for record in ordered} - {ActivityType.NONE}
    if len(kinds) >= 2:
        score += TYPE_DIVERSITY_BONUS
        if len(kinds) >= 3:
            score += RICH_DIVERSITY_BONUS
        reasons.append(f"Diverse activity ({len(kinds)} types)")
    else:
        reasons.append("Single activity type")

    confidence = clamp_score(score)
    return HumanPatternVerdict(
        is_human_like=confidence >= HUMAN_LIKE_MIN,
        confidence=confidence,
        sufficient_data=True,
        reasons=reasons,
    )
