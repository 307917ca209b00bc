from timegrid.models.timetable import Timetable  # noqa: F401
from timegrid.models.timetable_version import TimetableVersion  # noqa: F401
