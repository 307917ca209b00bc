from __future__ import annotations

import logging

from sqlalchemy import inspect

import timegrid.models  # noqa: F401
from timegrid.db.base import Base
from timegrid.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_TABLES: set[str] = {"timetables", "timetable_versions"}


def missing_tables() -> list[str]:
    with engine.connect() as connection:
        existing = set(inspect(connection).get_table_names())
    return sorted(REQUIRED_TABLES - existing)


def ensure_schema() -> None:
    missing = missing_tables()
    if not missing:
        return
    logger.info("Creating missing tables: %s", ", ".join(missing))
    Base.metadata.create_all(bind=engine)
