from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from timegrid.services.time_model import TIME_PATTERN, overlaps, parse_time_to_minutes

WeekDay = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
Difficulty = Literal["easy", "medium", "hard"]

WEEK_DAYS: tuple[str, ...] = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

DIFFICULTY_ORDER: dict[str, int] = {"hard": 0, "medium": 1, "easy": 2}


class TimeSlot(BaseModel):
    start: str
    end: str

    model_config = ConfigDict(frozen=True)

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        value = value.strip()
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeSlot":
        if parse_time_to_minutes(self.end) <= parse_time_to_minutes(self.start):
            raise ValueError("end must be after start")
        return self

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class Subject(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(default="", max_length=50)
    color: str | None = Field(default=None, max_length=50)
    hours_per_week: int = Field(alias="hoursPerWeek", ge=0, le=100)
    difficulty: Difficulty = "medium"

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Faculty(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    email: str | None = Field(default=None, max_length=320)
    subjects: list[str] = Field(default_factory=list)
    availability: dict[WeekDay, list[TimeSlot]] = Field(default_factory=dict)
    max_hours_per_day: int = Field(alias="maxHoursPerDay", ge=0, le=24)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def teaches(self, subject_id: str) -> bool:
        return subject_id in self.subjects


class Classroom(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=100)
    capacity: int = Field(default=0, ge=0, le=5000)
    type: Literal["lecture", "lab", "seminar"] = "lecture"

    model_config = ConfigDict(frozen=True)


class StudentPreferences(BaseModel):
    prefer_morning: bool = Field(default=True, alias="preferMorning")
    prefer_even_distribution: bool = Field(default=True, alias="preferEvenDistribution")
    avoid_difficult_consecutive: bool = Field(default=True, alias="avoidDifficultConsecutive")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class TimetableConfig(BaseModel):
    subjects: list[Subject] = Field(default_factory=list)
    faculty: list[Faculty] = Field(default_factory=list)
    classrooms: list[Classroom] = Field(default_factory=list)
    preferences: StudentPreferences = Field(default_factory=StudentPreferences)
    working_days: list[WeekDay] = Field(alias="workingDays", min_length=1)
    daily_slots: list[TimeSlot] = Field(alias="dailySlots", min_length=1)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("working_days")
    @classmethod
    def dedupe_working_days(cls, value: list[str]) -> list[str]:
        unique: list[str] = []
        for day in value:
            if day not in unique:
                unique.append(day)
        return unique

    @model_validator(mode="after")
    def validate_daily_template(self) -> "TimetableConfig":
        slots = self.daily_slots
        for index, slot in enumerate(slots):
            for other in slots[index + 1:]:
                if overlaps(slot, other):
                    raise ValueError(f"Daily slots {slot} and {other} overlap")
        return self

    def subject_map(self) -> dict[str, Subject]:
        return {subject.id: subject for subject in self.subjects}

    def faculty_map(self) -> dict[str, Faculty]:
        return {member.id: member for member in self.faculty}

    def classroom_map(self) -> dict[str, Classroom]:
        return {room.id: room for room in self.classrooms}

    def total_requested_hours(self) -> int:
        return sum(subject.hours_per_week for subject in self.subjects)
