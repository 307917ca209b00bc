from __future__ import annotations

from contextlib import contextmanager
import logging
import random
from threading import Lock
from typing import Iterator

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from timegrid.core.config import Settings
from timegrid.core.exceptions import MoveRejectedError, ResourceNotFoundError, SchedulerError
from timegrid.models.timetable import Timetable
from timegrid.models.timetable_version import TimetableVersion
from timegrid.schemas.config import TimetableConfig
from timegrid.schemas.timetable import (
    Conflict,
    Insight,
    MoveEntryRequest,
    ScheduleEntry,
    SchedulerStats,
    SlotStateKey,
    TimetableCreate,
    TimetableOut,
    TimetableSummaryOut,
    UpdateEntryRequest,
)
from timegrid.services.assignment_engine import generate_timetable
from timegrid.services.conflict_service import revalidate
from timegrid.services.move_evaluator import check_move_conflicts
from timegrid.services.stats import calculate_stats, fill_score

logger = logging.getLogger(__name__)

OVERLAP_TYPES = {"faculty_overlap", "classroom_overlap"}
MANUAL_MOVE_REASON = "Manually moved by user"


class TimetableLockRegistry:
    """One lock per timetable so edits to the same entry set never interleave."""

    def __init__(self) -> None:
        self._locks: dict[str, Lock] = {}
        self._guard = Lock()

    def lock_for(self, timetable_id: str) -> Lock:
        with self._guard:
            lock = self._locks.get(timetable_id)
            if lock is None:
                lock = Lock()
                self._locks[timetable_id] = lock
            return lock

    def discard(self, timetable_id: str) -> None:
        with self._guard:
            self._locks.pop(timetable_id, None)

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()


_registry = TimetableLockRegistry()


@contextmanager
def timetable_lock(timetable_id: str) -> Iterator[None]:
    with _registry.lock_for(timetable_id):
        yield


def clear_timetable_locks() -> None:
    _registry.clear()


def _dump_entries(entries: list[ScheduleEntry]) -> list[dict]:
    return [entry.model_dump(by_alias=True, mode="json") for entry in entries]


class TimetableEditor:
    def __init__(self, db: Session, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    def _load(self, timetable_id: str) -> Timetable:
        row = self.db.get(Timetable, timetable_id)
        if row is None:
            raise ResourceNotFoundError("Timetable", timetable_id)
        return row

    @staticmethod
    def _config(row: Timetable) -> TimetableConfig:
        return TimetableConfig.model_validate(row.config)

    @staticmethod
    def _entries(row: Timetable) -> list[ScheduleEntry]:
        return [ScheduleEntry.model_validate(item) for item in row.entries or []]

    @staticmethod
    def _conflicts(row: Timetable) -> list[Conflict]:
        return [Conflict.model_validate(item) for item in row.conflicts or []]

    @staticmethod
    def _find_entry(entries: list[ScheduleEntry], entry_id: str) -> ScheduleEntry:
        for entry in entries:
            if entry.id == entry_id:
                return entry
        raise ResourceNotFoundError("Schedule entry", entry_id)

    def _rng(self, seed: int | None = None) -> random.Random:
        return random.Random(seed if seed is not None else self.settings.random_seed)

    def _commit(
        self,
        row: Timetable,
        entries: list[ScheduleEntry],
        *,
        action: str,
        description: str,
        carried_conflicts: list[Conflict] | None = None,
        insights: list[Insight] | None = None,
    ) -> Timetable:
        config = self._config(row)
        if carried_conflicts is None:
            # Unplaced-hour reports survive edits; overlaps are always recomputed.
            carried_conflicts = [item for item in self._conflicts(row) if item.type not in OVERLAP_TYPES]
        stamped, overlap_conflicts = revalidate(entries, config.faculty, config.classrooms)
        conflicts = [*carried_conflicts, *overlap_conflicts]

        row.entries = _dump_entries(stamped)
        row.conflicts = [item.model_dump(mode="json") for item in conflicts]
        if insights is not None:
            row.insights = [item.model_dump(by_alias=True, mode="json") for item in insights]
        row.score = fill_score(len(stamped), config)
        row.revision = (row.revision or 0) + 1
        self.db.add(
            TimetableVersion(
                timetable_id=row.id,
                revision=row.revision,
                action=action,
                description=description,
                entries=row.entries,
                conflicts=row.conflicts,
                config=row.config,
                summary={
                    "entries": len(stamped),
                    "conflicts": len(conflicts),
                    "score": round(row.score, 1),
                },
            )
        )
        self.db.commit()
        self.db.refresh(row)
        logger.info(
            "Timetable %s revision=%s action=%s entries=%s conflicts=%s",
            row.id,
            row.revision,
            action,
            len(stamped),
            len(conflicts),
        )
        return row

    def create(self, payload: TimetableCreate) -> Timetable:
        row = Timetable(
            name=payload.name,
            config=payload.config.model_dump(by_alias=True, mode="json"),
            entries=[],
            conflicts=[],
            insights=[],
            score=0.0,
            revision=0,
        )
        self.db.add(row)
        self.db.flush()
        with timetable_lock(row.id):
            if payload.generate:
                return self._generate(row)
            return self._commit(row, [], action="create", description="Created empty timetable", insights=[])

    def _generate(self, row: Timetable, seed: int | None = None) -> Timetable:
        config = self._config(row)
        locked = [entry for entry in self._entries(row) if entry.is_locked]
        result = generate_timetable(
            config,
            rng=self._rng(seed),
            jitter=self.settings.scoring_jitter,
            insight_limit=self.settings.insight_limit,
            locked_entries=locked,
        )
        description = "Generated new timetable"
        if locked:
            description = f"Regenerated timetable keeping {len(locked)} locked class(es)"
        return self._commit(
            row,
            result.entries,
            action="generate",
            description=description,
            carried_conflicts=result.conflicts,
            insights=result.insights,
        )

    def generate(self, timetable_id: str, seed: int | None = None) -> Timetable:
        with timetable_lock(timetable_id):
            return self._generate(self._load(timetable_id), seed)

    def update_config(self, timetable_id: str, config: TimetableConfig) -> Timetable:
        """Replace the configuration between generation runs.

        Entries whose subject, faculty member, classroom or day no longer exists
        are dropped; the rest are kept as placed. Unplaced-hour reports from the
        previous generation no longer apply and are cleared.
        """
        with timetable_lock(timetable_id):
            row = self._load(timetable_id)
            subjects = config.subject_map()
            faculty = config.faculty_map()
            classrooms = config.classroom_map()
            entries = self._entries(row)
            kept = [
                entry
                for entry in entries
                if entry.subject_id in subjects
                and entry.faculty_id in faculty
                and entry.classroom_id in classrooms
                and entry.day in config.working_days
            ]
            if len(kept) != len(entries):
                logger.info(
                    "Timetable %s dropped %s entry(ies) no longer covered by its configuration",
                    timetable_id,
                    len(entries) - len(kept),
                )
            row.config = config.model_dump(by_alias=True, mode="json")
            return self._commit(
                row,
                kept,
                action="configure",
                description="Updated timetable configuration",
                carried_conflicts=[],
            )

    def move_entry(self, timetable_id: str, entry_id: str, request: MoveEntryRequest) -> Timetable:
        with timetable_lock(timetable_id):
            row = self._load(timetable_id)
            config = self._config(row)
            entries = self._entries(row)
            entry = self._find_entry(entries, entry_id)
            if entry.is_locked:
                raise SchedulerError(
                    f"Entry {entry_id} is locked and cannot be moved",
                    details={"entryId": entry_id},
                    status_code=409,
                )
            classroom_id = request.classroom_id or entry.classroom_id
            if classroom_id not in config.classroom_map():
                raise ResourceNotFoundError("Classroom", classroom_id)

            conflicts = check_move_conflicts(
                entry, request.day, request.time_slot, classroom_id, entries, config.faculty
            )
            if conflicts:
                logger.warning(
                    "Rejected move of entry %s in timetable %s: %s conflict(s)",
                    entry_id,
                    timetable_id,
                    len(conflicts),
                )
                raise MoveRejectedError(entry_id, [item.model_dump(mode="json") for item in conflicts])

            moved = entry.model_copy(
                update={
                    "day": request.day,
                    "time_slot": request.time_slot,
                    "classroom_id": classroom_id,
                    "ai_reason": MANUAL_MOVE_REASON,
                }
            )
            updated = [moved if item.id == entry_id else item for item in entries]
            return self._commit(row, updated, action="move", description="Moved class to new slot")

    def update_entry(self, timetable_id: str, entry_id: str, request: UpdateEntryRequest) -> Timetable:
        with timetable_lock(timetable_id):
            row = self._load(timetable_id)
            config = self._config(row)
            entries = self._entries(row)
            entry = self._find_entry(entries, entry_id)

            changes: dict = {}
            if request.day is not None:
                changes["day"] = request.day
            if request.time_slot is not None:
                changes["time_slot"] = request.time_slot
            if request.classroom_id is not None:
                if request.classroom_id not in config.classroom_map():
                    raise ResourceNotFoundError("Classroom", request.classroom_id)
                changes["classroom_id"] = request.classroom_id
            if request.faculty_id is not None:
                if request.faculty_id not in config.faculty_map():
                    raise ResourceNotFoundError("Faculty", request.faculty_id)
                changes["faculty_id"] = request.faculty_id

            state_changes = {
                key: value
                for key, value in (
                    ("is_locked", request.is_locked),
                    ("is_preferred", request.is_preferred),
                    ("is_avoided", request.is_avoided),
                )
                if value is not None
            }
            if state_changes:
                changes["slot_state"] = entry.slot_state.model_copy(update=state_changes)
            if not changes:
                raise SchedulerError("No changes supplied for entry update")

            updated_entry = entry.model_copy(update=changes)
            updated = [updated_entry if item.id == entry_id else item for item in entries]
            return self._commit(row, updated, action="update", description="Updated class slot")

    def toggle_slot_state(self, timetable_id: str, entry_id: str, key: SlotStateKey) -> Timetable:
        with timetable_lock(timetable_id):
            row = self._load(timetable_id)
            entries = self._entries(row)
            entry = self._find_entry(entries, entry_id)
            state = entry.slot_state.model_copy(update={key: not getattr(entry.slot_state, key)})
            toggled = entry.model_copy(update={"slot_state": state})
            updated = [toggled if item.id == entry_id else item for item in entries]
            return self._commit(row, updated, action="toggle", description=f"Toggled {key} state")

    def delete_entry(self, timetable_id: str, entry_id: str) -> Timetable:
        with timetable_lock(timetable_id):
            row = self._load(timetable_id)
            entries = self._entries(row)
            self._find_entry(entries, entry_id)
            remaining = [item for item in entries if item.id != entry_id]
            return self._commit(row, remaining, action="delete", description="Deleted class")

    def restore_revision(self, timetable_id: str, revision: int) -> Timetable:
        with timetable_lock(timetable_id):
            row = self._load(timetable_id)
            version = self.db.execute(
                select(TimetableVersion).where(
                    TimetableVersion.timetable_id == timetable_id,
                    TimetableVersion.revision == revision,
                )
            ).scalar_one_or_none()
            if version is None:
                raise ResourceNotFoundError("Timetable revision", str(revision))
            if version.config:
                row.config = version.config
            entries = [ScheduleEntry.model_validate(item) for item in version.entries]
            carried = [
                conflict
                for conflict in (Conflict.model_validate(item) for item in version.conflicts or [])
                if conflict.type not in OVERLAP_TYPES
            ]
            return self._commit(
                row,
                entries,
                action="restore",
                description=f"Restored revision {revision}",
                carried_conflicts=carried,
            )

    def list_versions(self, timetable_id: str) -> list[TimetableVersion]:
        self._load(timetable_id)
        return list(
            self.db.execute(
                select(TimetableVersion)
                .where(TimetableVersion.timetable_id == timetable_id)
                .order_by(TimetableVersion.revision.desc())
                .limit(self.settings.max_revisions_listed)
            ).scalars()
        )

    def list_timetables(self) -> list[TimetableSummaryOut]:
        rows = self.db.execute(select(Timetable).order_by(Timetable.created_at.desc())).scalars()
        return [
            TimetableSummaryOut(
                id=row.id,
                name=row.name,
                revision=row.revision,
                score=row.score,
                entry_count=len(row.entries or []),
                reported_conflicts=len(row.conflicts or []),
                updated_at=row.updated_at,
            )
            for row in rows
        ]

    def get(self, timetable_id: str) -> Timetable:
        return self._load(timetable_id)

    def stats(self, timetable_id: str) -> SchedulerStats:
        row = self._load(timetable_id)
        return calculate_stats(self._entries(row), self._config(row))

    def delete_timetable(self, timetable_id: str) -> None:
        with timetable_lock(timetable_id):
            row = self._load(timetable_id)
            self.db.execute(delete(TimetableVersion).where(TimetableVersion.timetable_id == timetable_id))
            self.db.delete(row)
            self.db.commit()
        _registry.discard(timetable_id)

    def to_out(self, row: Timetable) -> TimetableOut:
        return TimetableOut(
            id=row.id,
            name=row.name,
            revision=row.revision,
            config=self._config(row),
            entries=self._entries(row),
            conflicts=self._conflicts(row),
            insights=[Insight.model_validate(item) for item in row.insights or []],
            score=row.score,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
