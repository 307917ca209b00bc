from __future__ import annotations

from collections import Counter, defaultdict
import logging
import random
import uuid
from dataclasses import dataclass
from time import perf_counter
from typing import Callable, Iterable

from timegrid.schemas.config import (
    DIFFICULTY_ORDER,
    Classroom,
    Faculty,
    Subject,
    TimeSlot,
    TimetableConfig,
)
from timegrid.schemas.timetable import Conflict, GeneratedTimetable, Insight, ScheduleEntry
from timegrid.services.availability import is_faculty_available
from timegrid.services.slot_scorer import DEFAULT_JITTER, SlotScorer, distribution_bonus
from timegrid.services.stats import fill_score
from timegrid.services.time_model import overlaps, slot_key

logger = logging.getLogger(__name__)

DEFAULT_INSIGHT_LIMIT = 5

DAY_LABELS = {
    "monday": "Monday",
    "tuesday": "Tuesday",
    "wednesday": "Wednesday",
    "thursday": "Thursday",
    "friday": "Friday",
    "saturday": "Saturday",
}


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class ClassRequirement:
    subject: Subject
    faculty: Faculty
    remaining: int


@dataclass(frozen=True)
class Candidate:
    day: str
    slot: TimeSlot
    classroom: Classroom
    score: float


class AssignmentEngine:
    """Greedy constructive scheduler.

    Requirements are placed one hour at a time, hardest subjects first. Each
    placement takes the best scoring free (day, slot, classroom) triple over the
    whole week; a requirement with no free triple left is reported as an
    ``availability`` conflict and dropped, there is no backtracking.

    Every occupancy tracker lives inside a single :meth:`run` call.
    """

    def __init__(
        self,
        config: TimetableConfig,
        *,
        rng: random.Random | None = None,
        jitter: float = DEFAULT_JITTER,
        insight_limit: int = DEFAULT_INSIGHT_LIMIT,
    ) -> None:
        self.config = config
        self.random = rng or random.Random()
        self.scorer = SlotScorer(self.random, jitter=jitter)
        self.insight_limit = insight_limit
        self.subjects = config.subject_map()

    def _build_requirements(self) -> tuple[list[ClassRequirement], list[Subject]]:
        requirements: list[ClassRequirement] = []
        unassigned: list[Subject] = []
        for subject in self.config.subjects:
            # First listed faculty wins when several teach the same subject.
            faculty = next((member for member in self.config.faculty if member.teaches(subject.id)), None)
            if faculty is None:
                unassigned.append(subject)
                continue
            requirements.append(ClassRequirement(subject=subject, faculty=faculty, remaining=subject.hours_per_week))
        requirements.sort(key=lambda req: DIFFICULTY_ORDER[req.subject.difficulty])
        return requirements, unassigned

    def _ranked_days(self, subject_id: str, subject_day_counts: Counter) -> list[str]:
        return sorted(self.config.working_days, key=lambda day: subject_day_counts[(subject_id, day)])

    def run(
        self,
        *,
        locked_entries: Iterable[ScheduleEntry] = (),
        should_cancel: Callable[[], bool] | None = None,
    ) -> GeneratedTimetable:
        start = perf_counter()
        config = self.config
        preferences = config.preferences

        entries: list[ScheduleEntry] = []
        conflicts: list[Conflict] = []
        insights: list[Insight] = []

        faculty_occ: dict[tuple[str, str], set[str]] = defaultdict(set)
        room_occ: dict[tuple[str, str], set[str]] = defaultdict(set)
        faculty_day_hours: Counter[tuple[str, str]] = Counter()
        subject_day_counts: Counter[tuple[str, str]] = Counter()
        entries_by_day: dict[str, list[ScheduleEntry]] = defaultdict(list)
        locked_hours: Counter[str] = Counter()

        def record(entry: ScheduleEntry) -> None:
            entries.append(entry)
            entries_by_day[entry.day].append(entry)
            subject_day_counts[(entry.subject_id, entry.day)] += 1
            faculty_day_hours[(entry.faculty_id, entry.day)] += 1
            keys = {slot_key(entry.time_slot)}
            keys.update(slot_key(slot) for slot in config.daily_slots if overlaps(slot, entry.time_slot))
            faculty_occ[(entry.faculty_id, entry.day)].update(keys)
            room_occ[(entry.classroom_id, entry.day)].update(keys)

        for entry in locked_entries:
            record(entry)
            locked_hours[entry.subject_id] += 1

        requirements, unassigned = self._build_requirements()
        for subject in unassigned:
            logger.warning("Subject %s (%s) has no eligible faculty; skipping", subject.name, subject.id)
            insights.append(
                Insight(
                    id=new_id(),
                    type="warning",
                    message=f"{subject.name} has no faculty assigned and was not scheduled",
                )
            )

        cancelled = False
        generated = 0
        unplaced_hours = 0
        for req in requirements:
            if should_cancel is not None and should_cancel():
                cancelled = True
                logger.info("Timetable generation cancelled after %s placement(s)", generated)
                break

            subject, faculty = req.subject, req.faculty
            req.remaining = max(0, req.remaining - locked_hours[subject.id])

            while req.remaining > 0:
                best: Candidate | None = None
                for day in self._ranked_days(subject.id, subject_day_counts):
                    if faculty_day_hours[(faculty.id, day)] >= faculty.max_hours_per_day:
                        continue
                    day_count = subject_day_counts[(subject.id, day)]
                    bonus = distribution_bonus(day_count) if preferences.prefer_even_distribution else 0.0
                    busy = faculty_occ[(faculty.id, day)]
                    for slot in config.daily_slots:
                        key = slot_key(slot)
                        if key in busy or not is_faculty_available(faculty, day, slot):
                            continue
                        for classroom in config.classrooms:
                            if key in room_occ[(classroom.id, day)]:
                                continue
                            score = self.scorer.score(
                                slot, subject, preferences, entries_by_day[day], self.subjects
                            ) + bonus
                            if best is None or score > best.score:
                                best = Candidate(day=day, slot=slot, classroom=classroom, score=score)

                if best is None:
                    conflicts.append(
                        Conflict(
                            type="availability",
                            description=f"Could not schedule {subject.name} - no available slots",
                            entries=[],
                            severity="error",
                        )
                    )
                    unplaced_hours += req.remaining
                    logger.debug("No slot left for %s; %s hour(s) unplaced", subject.id, req.remaining)
                    break

                reason = self.scorer.explain(
                    best.slot,
                    subject,
                    preferences,
                    same_subject_count=subject_day_counts[(subject.id, best.day)],
                    hard_neighbours=self.scorer.hard_neighbours(best.slot, entries_by_day[best.day], self.subjects),
                )
                entry = ScheduleEntry(
                    id=new_id(),
                    subject_id=subject.id,
                    faculty_id=faculty.id,
                    classroom_id=best.classroom.id,
                    day=best.day,
                    time_slot=best.slot,
                    ai_reason=reason,
                )
                record(entry)
                req.remaining -= 1
                if generated < self.insight_limit:
                    insights.append(
                        Insight(
                            id=new_id(),
                            type="explanation",
                            message=(
                                f"{subject.name} on {DAY_LABELS.get(best.day, best.day)} "
                                f"at {best.slot.start} in {best.classroom.name}: {reason}"
                            ),
                            entry_id=entry.id,
                        )
                    )
                generated += 1
                logger.debug(
                    "Placed %s on %s %s room=%s score=%.2f",
                    subject.id,
                    best.day,
                    slot_key(best.slot),
                    best.classroom.id,
                    best.score,
                )

        if unplaced_hours:
            insights.append(
                Insight(
                    id=new_id(),
                    type="suggestion",
                    message=(
                        f"{unplaced_hours} class hour(s) could not be placed; widen faculty "
                        "availability, raise daily caps or add classrooms"
                    ),
                )
            )

        requested = config.total_requested_hours()
        score = fill_score(len(entries), config)
        logger.info(
            "Timetable generation placed=%s locked=%s requested=%s conflicts=%s score=%.1f runtime_ms=%s",
            len(entries),
            sum(locked_hours.values()),
            requested,
            len(conflicts),
            score,
            int((perf_counter() - start) * 1000),
        )
        return GeneratedTimetable(
            entries=entries,
            conflicts=conflicts,
            score=score,
            insights=insights,
            cancelled=cancelled,
        )


def generate_timetable(
    config: TimetableConfig,
    *,
    rng: random.Random | None = None,
    jitter: float = DEFAULT_JITTER,
    insight_limit: int = DEFAULT_INSIGHT_LIMIT,
    locked_entries: Iterable[ScheduleEntry] = (),
    should_cancel: Callable[[], bool] | None = None,
) -> GeneratedTimetable:
    engine = AssignmentEngine(config, rng=rng, jitter=jitter, insight_limit=insight_limit)
    return engine.run(locked_entries=locked_entries, should_cancel=should_cancel)
