from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from timegrid.schemas.config import Classroom, Faculty, TimeSlot, TimetableConfig, WeekDay
from timegrid.schemas.timetable import Conflict, ScheduleEntry


class GenerateTimetableRequest(BaseModel):
    config: TimetableConfig
    locked_entries: list[ScheduleEntry] = Field(default_factory=list, alias="lockedEntries")
    random_seed: int | None = Field(default=None, alias="randomSeed", ge=0, le=2_000_000_000)

    model_config = ConfigDict(populate_by_name=True)


class ValidateTimetableRequest(BaseModel):
    entries: list[ScheduleEntry] = Field(default_factory=list)
    faculty: list[Faculty] = Field(default_factory=list)
    classrooms: list[Classroom] = Field(default_factory=list)


class ValidateTimetableResponse(BaseModel):
    conflicts: list[Conflict]
    entries: list[ScheduleEntry]


class CheckMoveRequest(BaseModel):
    entry: ScheduleEntry
    new_day: WeekDay = Field(alias="newDay")
    new_slot: TimeSlot = Field(alias="newSlot")
    new_classroom_id: str | None = Field(default=None, alias="newClassroomId")
    entries: list[ScheduleEntry] = Field(default_factory=list)
    faculty: list[Faculty] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class CheckMoveResponse(BaseModel):
    safe: bool
    conflicts: list[Conflict]


class StatsRequest(BaseModel):
    entries: list[ScheduleEntry] = Field(default_factory=list)
    config: TimetableConfig
