from datetime import datetime, timedelta

from presence_keeper.human_pattern import ActivityHistory, analyze_human_pattern
from presence_keeper.models import ActivityRecord, ActivityType, ActivityVerdict

T0 = datetime(2026, 10, 21, 9, 0, 0)


def _records(offsets, kinds=None):
    kinds = kinds or [ActivityType.MOUSE_MOVEMENT] * len(offsets)
    return [
        ActivityRecord(timestamp=T0 + timedelta(seconds=offset), activity_type=kind, confidence=30)
        for offset, kind in zip(offsets, kinds)
    ]


def test_short_history_gets_benefit_of_the_doubt():
    verdict = analyze_human_pattern(_records([0, 60, 120]))

    assert verdict.is_human_like is True
    assert verdict.sufficient_data is False


def test_metronomic_single_type_bursts_look_automated():
    verdict = analyze_human_pattern(_records([0, 60, 120, 180, 240, 300]))

    assert verdict.sufficient_data is True
    assert verdict.is_human_like is False
    assert verdict.confidence == 0


def test_irregular_bursts_look_human():
    verdict = analyze_human_pattern(_records([0, 15, 90, 100, 260]))

    assert verdict.is_human_like is True
    assert verdict.confidence >= 50


def test_sustained_activity_on_every_poll_looks_human():
    verdict = analyze_human_pattern(_records([0, 2, 4, 6, 8, 10]), sample_interval=2.0)

    assert verdict.is_human_like is True


def test_type_diversity_adds_confidence():
    kinds = [
        ActivityType.MOUSE_MOVEMENT,
        ActivityType.KEYBOARD,
        ActivityType.MOUSE_CLICK,
        ActivityType.KEYBOARD,
    ]
    verdict = analyze_human_pattern(_records([0, 60, 120, 180], kinds))

    assert verdict.confidence == 40
    assert verdict.is_human_like is False


def test_history_only_records_active_ticks_and_is_bounded():
    history = ActivityHistory(size=3)
    active = ActivityVerdict(is_active=True, confidence_score=30, activity_type=ActivityType.KEYBOARD)

    history.add(ActivityVerdict(), T0)
    for index in range(5):
        history.add(active, T0 + timedelta(seconds=index))

    assert len(history) == 3
    assert history.records[0].timestamp == T0 + timedelta(seconds=2)


def test_recent_filters_old_records():
    history = ActivityHistory()
    active = ActivityVerdict(is_active=True, confidence_score=30, activity_type=ActivityType.KEYBOARD)
    history.add(active, T0)
    history.add(active, T0 + timedelta(minutes=20))

    recent = history.recent(T0 + timedelta(minutes=21))

    assert len(recent) == 1
