import random

from fastapi import APIRouter, Depends

from timegrid.core.config import Settings, get_settings
from timegrid.schemas.engine import (
    CheckMoveRequest,
    CheckMoveResponse,
    GenerateTimetableRequest,
    StatsRequest,
    ValidateTimetableRequest,
    ValidateTimetableResponse,
)
from timegrid.schemas.timetable import GeneratedTimetable, SchedulerStats
from timegrid.services.assignment_engine import generate_timetable
from timegrid.services.conflict_service import revalidate
from timegrid.services.move_evaluator import check_move_conflicts
from timegrid.services.stats import calculate_stats

router = APIRouter()


@router.post("/generate", response_model=GeneratedTimetable)
def generate(
    payload: GenerateTimetableRequest,
    settings: Settings = Depends(get_settings),
) -> GeneratedTimetable:
    seed = payload.random_seed if payload.random_seed is not None else settings.random_seed
    return generate_timetable(
        payload.config,
        rng=random.Random(seed),
        jitter=settings.scoring_jitter,
        insight_limit=settings.insight_limit,
        locked_entries=payload.locked_entries,
    )


@router.post("/validate", response_model=ValidateTimetableResponse)
def validate(payload: ValidateTimetableRequest) -> ValidateTimetableResponse:
    entries, conflicts = revalidate(payload.entries, payload.faculty, payload.classrooms)
    return ValidateTimetableResponse(conflicts=conflicts, entries=entries)


@router.post("/check-move", response_model=CheckMoveResponse)
def check_move(payload: CheckMoveRequest) -> CheckMoveResponse:
    conflicts = check_move_conflicts(
        payload.entry,
        payload.new_day,
        payload.new_slot,
        payload.new_classroom_id or payload.entry.classroom_id,
        payload.entries,
        payload.faculty,
    )
    return CheckMoveResponse(safe=not conflicts, conflicts=conflicts)


@router.post("/stats", response_model=SchedulerStats)
def stats(payload: StatsRequest) -> SchedulerStats:
    return calculate_stats(payload.entries, payload.config)
