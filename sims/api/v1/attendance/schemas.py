"""Attendance schemas."""

from datetime import date as date_type
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from sims.core.enums import AttendanceStatus, PersonType

TIME_PATTERN = r"^\d{2}:\d{2}$"


def _coerce_status(value: Any) -> Any:
    # Imported lazily: statuses.py depends on this module.
    from .statuses import parse_status

    return parse_status(value) if value is None or isinstance(value, str) else value


class AttendanceEntry(BaseModel):
    """One person's attendance for one date, as edited on the day sheet."""

    status: AttendanceStatus = AttendanceStatus.UNSET
    check_in: Optional[str] = Field(None, alias="checkIn")
    check_out: Optional[str] = Field(None, alias="checkOut")
    comment: Optional[str] = None

    class Config:
        populate_by_name = True

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _coerce_status(value)


class AttendanceEntryInput(AttendanceEntry):
    """A day-sheet row submitted for saving."""

    check_in: Optional[str] = Field(None, alias="checkIn", pattern=TIME_PATTERN)
    check_out: Optional[str] = Field(None, alias="checkOut", pattern=TIME_PATTERN)
    comment: Optional[str] = Field(None, max_length=200)


class FieldRules(BaseModel):
    """Which auxiliary fields a status uses, and how the comment is filled in."""

    check_in: bool = False
    check_out: bool = False
    comment: bool = False
    comment_editable: bool = False
    fixed_comment: Optional[str] = None


class StatusOption(BaseModel):
    status: AttendanceStatus
    rules: FieldRules


class AttendanceOptions(BaseModel):
    person_type: PersonType
    statuses: List[StatusOption]
    comments: List[str]
    default_check_in: str
    default_check_out: str


class StatusChangeRequest(BaseModel):
    """A status selection for one row; check_in/check_out/comment override the defaults."""

    status: AttendanceStatus
    current: Optional[AttendanceEntry] = None
    check_in: Optional[str] = Field(None, pattern=TIME_PATTERN)
    check_out: Optional[str] = Field(None, pattern=TIME_PATTERN)
    comment: Optional[str] = Field(None, max_length=200)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _coerce_status(value)


class DaySheet(BaseModel):
    date: date_type
    person_type: PersonType
    entries: Dict[str, AttendanceEntry]


class BulkAttendanceRequest(BaseModel):
    date: date_type
    entries: Dict[str, AttendanceEntryInput] = Field(..., description="Keyed by student or teacher id")


# --- History ---
class AttendanceHistoryRecord(BaseModel):
    id: Optional[str] = None
    student_id: str
    student_name: str
    admission_number: str
    date: Optional[date_type] = None
    status: AttendanceStatus
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    reason: str = ""


class AttendanceStats(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    half_day: int = 0
    leave: int = 0
    total_students: int = 0
    total_records: int = 0
    attendance_percentage: float = 0.0


class MonthlyReport(BaseModel):
    student_id: str
    month: int
    year: int
    records: List[AttendanceHistoryRecord]
    stats: AttendanceStats
    summary: Optional[Dict[str, Any]] = None
