import math
import random

from timegrid.schemas.config import TimeSlot
from timegrid.schemas.timetable import ScheduleEntry, SlotState
from timegrid.services.assignment_engine import generate_timetable
from timegrid.services.stats import calculate_stats, fill_score
from timegrid.services.workload import weekly_capacity


def test_stats_on_empty_set_are_zero(school_config):
    stats = calculate_stats([], school_config)

    assert stats.total_classes == 0
    assert stats.faculty_utilization == 0
    assert stats.classroom_utilization == 0
    assert stats.preference_score == 0
    assert stats.conflict_count == 0
    assert not any(math.isnan(value) for value in (stats.faculty_utilization, stats.classroom_utilization))


def test_stats_after_generation(school_config):
    result = generate_timetable(school_config, rng=random.Random(11))
    stats = calculate_stats(result.entries, school_config)

    # Capacity: f1 2x5, f2 3x5, f3 3x5 = 40 teachable slots; 2 rooms x 5 days x 6 slots = 60.
    assert stats.total_classes == 20
    assert stats.faculty_utilization == 50.0
    assert stats.classroom_utilization == 33.3
    assert stats.preference_score == 100.0


def test_weekly_capacity_counts_only_days_with_availability(simple_config):
    member = simple_config.faculty[0]
    # Two available days, cap 4 but only 2 slots per day.
    assert weekly_capacity(member, ["monday", "tuesday", "wednesday"], 2) == 4


def test_conflict_count_uses_slot_state_flags(simple_config):
    flagged = ScheduleEntry(
        id="e1",
        subject_id="s1",
        faculty_id="f1",
        classroom_id="c1",
        day="monday",
        time_slot=TimeSlot(start="08:00", end="09:00"),
        slot_state=SlotState(has_conflict=True, conflict_reason="Classroom double-booked"),
    )
    clean = flagged.model_copy(update={"id": "e2", "slot_state": SlotState()})

    stats = calculate_stats([flagged, clean], simple_config)

    assert stats.conflict_count == 1
    assert stats.total_classes == 2
    assert stats.preference_score == 100.0


def test_fill_score(simple_config):
    assert fill_score(1, simple_config) == 50
    assert fill_score(2, simple_config) == 100
    # A configuration edit can leave more entries than requested hours.
    assert fill_score(3, simple_config) == 100
