from __future__ import annotations

from typing import Sequence

from timegrid.schemas.config import Classroom, Faculty
from timegrid.schemas.timetable import Conflict, ScheduleEntry
from timegrid.services.time_model import overlaps

FACULTY_OVERLAP_MESSAGE = "Faculty assigned to multiple classes at the same time"
CLASSROOM_OVERLAP_MESSAGE = "Classroom double-booked"


def validate_timetable(
    entries: Sequence[ScheduleEntry],
    faculty: Sequence[Faculty] = (),
    classrooms: Sequence[Classroom] = (),
) -> list[Conflict]:
    """Pairwise double-booking scan over the whole entry set.

    A pair on the same day with overlapping slots yields a ``faculty_overlap``
    when it shares a faculty member and, independently, a ``classroom_overlap``
    when it shares a room. ``faculty`` and ``classrooms`` are accepted for
    callers that pass reference tables; detection only needs the entries.
    """
    conflicts: list[Conflict] = []
    n = len(entries)
    for i in range(n):
        first = entries[i]
        for j in range(i + 1, n):
            second = entries[j]
            if first.day != second.day:
                continue
            if not overlaps(first.time_slot, second.time_slot):
                continue
            if first.faculty_id == second.faculty_id:
                conflicts.append(
                    Conflict(
                        type="faculty_overlap",
                        description=FACULTY_OVERLAP_MESSAGE,
                        entries=[first.id, second.id],
                        severity="error",
                    )
                )
            if first.classroom_id == second.classroom_id:
                conflicts.append(
                    Conflict(
                        type="classroom_overlap",
                        description=CLASSROOM_OVERLAP_MESSAGE,
                        entries=[first.id, second.id],
                        severity="error",
                    )
                )
    return conflicts


def stamp_conflicts(entries: Sequence[ScheduleEntry], conflicts: Sequence[Conflict]) -> list[ScheduleEntry]:
    reasons: dict[str, str] = {}
    for conflict in conflicts:
        for entry_id in conflict.entries:
            reasons.setdefault(entry_id, conflict.description)

    stamped: list[ScheduleEntry] = []
    for entry in entries:
        reason = reasons.get(entry.id)
        state = entry.slot_state.model_copy(update={"has_conflict": reason is not None, "conflict_reason": reason})
        stamped.append(entry.model_copy(update={"slot_state": state}))
    return stamped


def revalidate(
    entries: Sequence[ScheduleEntry],
    faculty: Sequence[Faculty] = (),
    classrooms: Sequence[Classroom] = (),
) -> tuple[list[ScheduleEntry], list[Conflict]]:
    conflicts = validate_timetable(entries, faculty, classrooms)
    return stamp_conflicts(entries, conflicts), conflicts
