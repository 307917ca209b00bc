from __future__ import annotations

from timegrid.schemas.config import Faculty


def daily_slot_cap(faculty: Faculty, slots_per_day: int) -> int:
    if faculty.max_hours_per_day < 1:
        return 0
    return min(faculty.max_hours_per_day, slots_per_day)


def weekly_capacity(faculty: Faculty, working_days: list[str], slots_per_day: int) -> int:
    return sum(
        daily_slot_cap(faculty, slots_per_day)
        for day in working_days
        if faculty.availability.get(day)
    )
