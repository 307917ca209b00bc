from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from timegrid.core.config import Settings, get_settings
from timegrid.db.session import SessionLocal
from timegrid.services.timetable_service import TimetableEditor


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_editor(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> TimetableEditor:
    return TimetableEditor(db, settings)
