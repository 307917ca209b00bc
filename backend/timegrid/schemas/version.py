from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TimetableVersionOut(BaseModel):
    id: str
    timetable_id: str = Field(alias="timetableId")
    revision: int
    action: str
    description: str
    summary: dict
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
