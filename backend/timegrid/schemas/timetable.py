from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from timegrid.schemas.config import TimeSlot, TimetableConfig, WeekDay

ConflictType = Literal[
    "faculty_overlap",
    "classroom_overlap",
    "availability",
    "capacity",
    "preference_violation",
]

SlotStateKey = Literal["is_locked", "is_preferred", "is_avoided"]


class SlotState(BaseModel):
    is_locked: bool = Field(default=False, alias="isLocked")
    is_preferred: bool = Field(default=False, alias="isPreferred")
    is_avoided: bool = Field(default=False, alias="isAvoided")
    has_conflict: bool = Field(default=False, alias="hasConflict")
    conflict_reason: str | None = Field(default=None, alias="conflictReason")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ScheduleEntry(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(alias="subjectId")
    faculty_id: str = Field(alias="facultyId")
    classroom_id: str = Field(alias="classroomId")
    day: WeekDay
    time_slot: TimeSlot = Field(alias="timeSlot")
    slot_state: SlotState = Field(default_factory=SlotState, alias="slotState")
    ai_reason: str | None = Field(default=None, alias="aiReason")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def is_locked(self) -> bool:
        return self.slot_state.is_locked


class Conflict(BaseModel):
    type: ConflictType
    description: str
    entries: list[str] = Field(default_factory=list)
    severity: Literal["warning", "error"] = "error"

    model_config = ConfigDict(frozen=True)


class Insight(BaseModel):
    id: str
    type: Literal["suggestion", "warning", "explanation"]
    message: str
    entry_id: str | None = Field(default=None, alias="entryId")

    model_config = ConfigDict(populate_by_name=True)


class GeneratedTimetable(BaseModel):
    entries: list[ScheduleEntry] = Field(default_factory=list)
    conflicts: list[Conflict] = Field(default_factory=list)
    score: float = 0.0
    insights: list[Insight] = Field(default_factory=list)
    cancelled: bool = False


class SchedulerStats(BaseModel):
    total_classes: int = Field(alias="totalClasses")
    faculty_utilization: float = Field(alias="facultyUtilization")
    classroom_utilization: float = Field(alias="classroomUtilization")
    preference_score: float = Field(alias="preferenceScore")
    conflict_count: int = Field(default=0, alias="conflictCount")

    model_config = ConfigDict(populate_by_name=True)


class TimetableCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    config: TimetableConfig
    generate: bool = True


class TimetableSummaryOut(BaseModel):
    id: str
    name: str
    revision: int
    score: float
    entry_count: int = Field(alias="entryCount")
    reported_conflicts: int = Field(alias="reportedConflicts")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class TimetableOut(BaseModel):
    id: str
    name: str
    revision: int
    config: TimetableConfig
    entries: list[ScheduleEntry] = Field(default_factory=list)
    conflicts: list[Conflict] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)
    score: float = 0.0
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class MoveEntryRequest(BaseModel):
    day: WeekDay
    time_slot: TimeSlot = Field(alias="timeSlot")
    classroom_id: str | None = Field(default=None, alias="classroomId")

    model_config = ConfigDict(populate_by_name=True)


class UpdateEntryRequest(BaseModel):
    day: WeekDay | None = None
    time_slot: TimeSlot | None = Field(default=None, alias="timeSlot")
    classroom_id: str | None = Field(default=None, alias="classroomId")
    faculty_id: str | None = Field(default=None, alias="facultyId")
    is_locked: bool | None = Field(default=None, alias="isLocked")
    is_preferred: bool | None = Field(default=None, alias="isPreferred")
    is_avoided: bool | None = Field(default=None, alias="isAvoided")

    model_config = ConfigDict(populate_by_name=True)


class ToggleSlotStateRequest(BaseModel):
    key: SlotStateKey
