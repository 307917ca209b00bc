import os

os.environ.setdefault("TIMEGRID_DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("TIMEGRID_RANDOM_SEED", "7")

import pytest
from fastapi.testclient import TestClient #fake http client, calls the FastAPI routes without a real server
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import timegrid.models  # noqa: F401
from timegrid.api.deps import get_db
from timegrid.db.base import Base
from timegrid.main import app
from timegrid.schemas.config import Classroom, Faculty, StudentPreferences, Subject, TimeSlot, TimetableConfig
from timegrid.services.timetable_service import clear_timetable_locks


def slot(start: str, end: str) -> TimeSlot:
    return TimeSlot(start=start, end=end)


@pytest.fixture()
def simple_config() -> TimetableConfig:
    return TimetableConfig(
        subjects=[Subject(id="s1", name="Mathematics", code="MATH101", hours_per_week=2, difficulty="hard")],
        faculty=[
            Faculty(
                id="f1",
                name="Dr. Sarah Johnson",
                email="sarah.j@college.edu",
                subjects=["s1"],
                availability={
                    "monday": [slot("08:00", "10:00")],
                    "tuesday": [slot("08:00", "10:00")],
                },
                max_hours_per_day=4,
            )
        ],
        classrooms=[Classroom(id="c1", name="Room 101", capacity=40, type="lecture")],
        preferences=StudentPreferences(),
        working_days=["monday", "tuesday"],
        daily_slots=[slot("08:00", "09:00"), slot("09:00", "10:00")],
    )


@pytest.fixture()
def school_config() -> TimetableConfig:
    full_day = [slot("08:00", "17:00")]
    week = {day: full_day for day in ("monday", "tuesday", "wednesday", "thursday", "friday")}
    return TimetableConfig(
        subjects=[
            Subject(id="s1", name="Mathematics", code="MATH101", hours_per_week=5, difficulty="hard"),
            Subject(id="s2", name="Physics", code="PHY101", hours_per_week=4, difficulty="hard"),
            Subject(id="s3", name="Chemistry", code="CHEM101", hours_per_week=4, difficulty="medium"),
            Subject(id="s4", name="English", code="ENG101", hours_per_week=4, difficulty="easy"),
            Subject(id="s5", name="History", code="HIST101", hours_per_week=3, difficulty="easy"),
        ],
        faculty=[
            Faculty(id="f1", name="Dr. Sarah Johnson", subjects=["s1"], availability=week, max_hours_per_day=2),
            Faculty(id="f2", name="Prof. Michael Chen", subjects=["s2", "s3"], availability=week, max_hours_per_day=3),
            Faculty(id="f3", name="Dr. Lisa Anderson", subjects=["s4", "s5"], availability=week, max_hours_per_day=3),
        ],
        classrooms=[
            Classroom(id="c1", name="Room 101", capacity=40, type="lecture"),
            Classroom(id="c2", name="Lab A", capacity=25, type="lab"),
        ],
        preferences=StudentPreferences(),
        working_days=["monday", "tuesday", "wednesday", "thursday", "friday"],
        daily_slots=[
            slot("08:00", "09:00"),
            slot("09:00", "10:00"),
            slot("10:00", "11:00"),
            slot("11:00", "12:00"),
            slot("14:00", "15:00"),
            slot("15:00", "16:00"),
        ],
    )


@pytest.fixture() #test client
def client():
    clear_timetable_locks()
    engine = create_engine( #isolated in-memory DB shared across threads
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    clear_timetable_locks()
