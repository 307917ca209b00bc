from __future__ import annotations

from typing import Sequence

from timegrid.schemas.config import TimetableConfig
from timegrid.schemas.timetable import ScheduleEntry, SchedulerStats
from timegrid.services.workload import weekly_capacity


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


def fill_score(placed: int, config: TimetableConfig) -> float:
    requested = config.total_requested_hours()
    if requested <= 0:
        return 100.0
    return min(100.0, placed / requested * 100)


def calculate_stats(entries: Sequence[ScheduleEntry], config: TimetableConfig) -> SchedulerStats:
    total_classes = len(entries)
    slots_per_day = len(config.daily_slots)

    faculty_slots = sum(
        weekly_capacity(member, config.working_days, slots_per_day) for member in config.faculty
    )
    classroom_slots = len(config.classrooms) * len(config.working_days) * slots_per_day

    target = config.total_requested_hours()
    if target <= 0 or total_classes >= target:
        preference_score = 100.0
    else:
        preference_score = _percent(total_classes, target)

    return SchedulerStats(
        total_classes=total_classes,
        faculty_utilization=_percent(total_classes, faculty_slots),
        classroom_utilization=_percent(total_classes, classroom_slots),
        preference_score=preference_score,
        conflict_count=sum(1 for entry in entries if entry.slot_state.has_conflict),
    )
