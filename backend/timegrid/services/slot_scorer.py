from __future__ import annotations

import random
from typing import Iterable

from timegrid.schemas.config import StudentPreferences, Subject, TimeSlot
from timegrid.schemas.timetable import ScheduleEntry
from timegrid.services.time_model import hhmm_value, start_hour

BASE_SCORE = 100.0
MORNING_LAST_HOUR = 11
MORNING_BONUS = 20.0
AFTERNOON_PENALTY = 10.0
HARD_NEIGHBOUR_PENALTY = 30.0
# Compared on HHMM readings, so 100 means "about an hour apart".
ADJACENCY_BAND = 100
DISTRIBUTION_BONUS_CAP = 20.0
DISTRIBUTION_BONUS_STEP = 10.0
DEFAULT_JITTER = 10.0


def distribution_bonus(same_subject_count: int) -> float:
    return max(0.0, DISTRIBUTION_BONUS_CAP - DISTRIBUTION_BONUS_STEP * same_subject_count)


class SlotScorer:
    """Preference-weighted desirability of a candidate slot for one subject.

    The jitter term only breaks ties between otherwise equal candidates. Pass a
    seeded ``random.Random`` to pin results, or ``jitter=0`` to drop the term.
    """

    def __init__(self, rng: random.Random | None = None, *, jitter: float = DEFAULT_JITTER) -> None:
        self.random = rng or random.Random()
        self.jitter = max(0.0, jitter)

    def is_morning(self, slot: TimeSlot) -> bool:
        return start_hour(slot) <= MORNING_LAST_HOUR

    def hard_neighbours(
        self,
        slot: TimeSlot,
        same_day_entries: Iterable[ScheduleEntry],
        subjects: dict[str, Subject],
    ) -> int:
        candidate_start = hhmm_value(slot.start)
        count = 0
        for entry in same_day_entries:
            entry_subject = subjects.get(entry.subject_id)
            if entry_subject is None or entry_subject.difficulty != "hard":
                continue
            entry_start = hhmm_value(entry.time_slot.start)
            entry_end = hhmm_value(entry.time_slot.end)
            if (
                abs(candidate_start - entry_end) <= ADJACENCY_BAND
                or abs(candidate_start - entry_start) <= ADJACENCY_BAND
            ):
                count += 1
        return count

    def base_score(
        self,
        slot: TimeSlot,
        subject: Subject,
        preferences: StudentPreferences,
        same_day_entries: Iterable[ScheduleEntry],
        subjects: dict[str, Subject],
    ) -> float:
        score = BASE_SCORE
        if subject.difficulty != "hard":
            return score

        if preferences.prefer_morning:
            score += MORNING_BONUS if self.is_morning(slot) else -AFTERNOON_PENALTY

        if preferences.avoid_difficult_consecutive:
            score -= HARD_NEIGHBOUR_PENALTY * self.hard_neighbours(slot, same_day_entries, subjects)
        return score

    def score(
        self,
        slot: TimeSlot,
        subject: Subject,
        preferences: StudentPreferences,
        same_day_entries: Iterable[ScheduleEntry],
        subjects: dict[str, Subject],
    ) -> float:
        score = self.base_score(slot, subject, preferences, same_day_entries, subjects)
        if self.jitter:
            score += self.random.random() * self.jitter
        return score

    def explain(
        self,
        slot: TimeSlot,
        subject: Subject,
        preferences: StudentPreferences,
        *,
        same_subject_count: int,
        hard_neighbours: int,
    ) -> str:
        if subject.difficulty == "hard" and preferences.prefer_morning and self.is_morning(slot):
            return f"Morning slot chosen so {subject.name}, a difficult subject, gets peak focus"
        if subject.difficulty == "hard" and preferences.avoid_difficult_consecutive and hard_neighbours == 0:
            return f"Kept {subject.name} apart from other difficult subjects on this day"
        if preferences.prefer_even_distribution and same_subject_count == 0:
            return f"Spread {subject.name} across the week for an even load"
        return "Best free combination of faculty time and classroom"
