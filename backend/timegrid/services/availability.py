from __future__ import annotations

from timegrid.schemas.config import Faculty, TimeSlot
from timegrid.services.time_model import contains


def is_faculty_available(faculty: Faculty, day: str, slot: TimeSlot) -> bool:
    # Partial overlap with a window is not enough; the slot must sit inside one.
    windows = faculty.availability.get(day) or []
    return any(contains(window, slot) for window in windows)
