from __future__ import annotations

from typing import Sequence

from timegrid.schemas.config import Faculty, TimeSlot
from timegrid.schemas.timetable import Conflict, ScheduleEntry
from timegrid.services.availability import is_faculty_available
from timegrid.services.conflict_service import CLASSROOM_OVERLAP_MESSAGE, FACULTY_OVERLAP_MESSAGE
from timegrid.services.time_model import overlaps


def check_move_conflicts(
    entry: ScheduleEntry,
    new_day: str,
    new_slot: TimeSlot,
    new_classroom_id: str,
    entries: Sequence[ScheduleEntry],
    faculty: Sequence[Faculty],
) -> list[Conflict]:
    """Conflicts a relocation of ``entry`` would introduce. Nothing is mutated.

    An empty list means the move is safe to commit.
    """
    conflicts: list[Conflict] = []

    member = next((item for item in faculty if item.id == entry.faculty_id), None)
    if member is not None and not is_faculty_available(member, new_day, new_slot):
        conflicts.append(
            Conflict(
                type="availability",
                description=f"{member.name} is not available on {new_day} at {new_slot.start}-{new_slot.end}",
                entries=[entry.id],
                severity="error",
            )
        )

    for other in entries:
        if other.id == entry.id or other.day != new_day:
            continue
        if not overlaps(other.time_slot, new_slot):
            continue
        if other.faculty_id == entry.faculty_id:
            conflicts.append(
                Conflict(
                    type="faculty_overlap",
                    description=FACULTY_OVERLAP_MESSAGE,
                    entries=[entry.id, other.id],
                    severity="error",
                )
            )
        if other.classroom_id == new_classroom_id:
            conflicts.append(
                Conflict(
                    type="classroom_overlap",
                    description=CLASSROOM_OVERLAP_MESSAGE,
                    entries=[entry.id, other.id],
                    severity="error",
                )
            )
    return conflicts
