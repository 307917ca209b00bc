from fastapi import APIRouter, Depends, Query, status

from timegrid.api.deps import get_editor
from timegrid.schemas.config import TimetableConfig
from timegrid.schemas.timetable import (
    MoveEntryRequest,
    SchedulerStats,
    TimetableCreate,
    TimetableOut,
    TimetableSummaryOut,
    ToggleSlotStateRequest,
    UpdateEntryRequest,
)
from timegrid.schemas.version import TimetableVersionOut
from timegrid.services.timetable_service import TimetableEditor

router = APIRouter()


@router.post("", response_model=TimetableOut, status_code=status.HTTP_201_CREATED)
def create_timetable(
    payload: TimetableCreate,
    editor: TimetableEditor = Depends(get_editor),
) -> TimetableOut:
    return editor.to_out(editor.create(payload))


@router.get("", response_model=list[TimetableSummaryOut])
def list_timetables(editor: TimetableEditor = Depends(get_editor)) -> list[TimetableSummaryOut]:
    return editor.list_timetables()


@router.get("/{timetable_id}", response_model=TimetableOut)
def get_timetable(timetable_id: str, editor: TimetableEditor = Depends(get_editor)) -> TimetableOut:
    return editor.to_out(editor.get(timetable_id))


@router.delete("/{timetable_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_timetable(timetable_id: str, editor: TimetableEditor = Depends(get_editor)) -> None:
    editor.delete_timetable(timetable_id)


@router.patch("/{timetable_id}/config", response_model=TimetableOut)
def update_config(
    timetable_id: str,
    payload: TimetableConfig,
    editor: TimetableEditor = Depends(get_editor),
) -> TimetableOut:
    return editor.to_out(editor.update_config(timetable_id, payload))


@router.post("/{timetable_id}/generate", response_model=TimetableOut)
def regenerate_timetable(
    timetable_id: str,
    seed: int | None = Query(default=None, ge=0, le=2_000_000_000),
    editor: TimetableEditor = Depends(get_editor),
) -> TimetableOut:
    return editor.to_out(editor.generate(timetable_id, seed))


@router.post("/{timetable_id}/entries/{entry_id}/move", response_model=TimetableOut)
def move_entry(
    timetable_id: str,
    entry_id: str,
    payload: MoveEntryRequest,
    editor: TimetableEditor = Depends(get_editor),
) -> TimetableOut:
    return editor.to_out(editor.move_entry(timetable_id, entry_id, payload))


@router.patch("/{timetable_id}/entries/{entry_id}", response_model=TimetableOut)
def update_entry(
    timetable_id: str,
    entry_id: str,
    payload: UpdateEntryRequest,
    editor: TimetableEditor = Depends(get_editor),
) -> TimetableOut:
    return editor.to_out(editor.update_entry(timetable_id, entry_id, payload))


@router.post("/{timetable_id}/entries/{entry_id}/toggle", response_model=TimetableOut)
def toggle_slot_state(
    timetable_id: str,
    entry_id: str,
    payload: ToggleSlotStateRequest,
    editor: TimetableEditor = Depends(get_editor),
) -> TimetableOut:
    return editor.to_out(editor.toggle_slot_state(timetable_id, entry_id, payload.key))


@router.delete("/{timetable_id}/entries/{entry_id}", response_model=TimetableOut)
def delete_entry(
    timetable_id: str,
    entry_id: str,
    editor: TimetableEditor = Depends(get_editor),
) -> TimetableOut:
    return editor.to_out(editor.delete_entry(timetable_id, entry_id))


@router.get("/{timetable_id}/stats", response_model=SchedulerStats)
def timetable_stats(timetable_id: str, editor: TimetableEditor = Depends(get_editor)) -> SchedulerStats:
    return editor.stats(timetable_id)


@router.get("/{timetable_id}/versions", response_model=list[TimetableVersionOut])
def list_versions(timetable_id: str, editor: TimetableEditor = Depends(get_editor)) -> list[TimetableVersionOut]:
    return [TimetableVersionOut.model_validate(item) for item in editor.list_versions(timetable_id)]


@router.post("/{timetable_id}/versions/{revision}/restore", response_model=TimetableOut)
def restore_version(
    timetable_id: str,
    revision: int,
    editor: TimetableEditor = Depends(get_editor),
) -> TimetableOut:
    return editor.to_out(editor.restore_revision(timetable_id, revision))
