"""Attendance service: day sheets, bulk saves, student history, stats and export."""

import csv
import io
import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

from fastapi import status

from sims.auth.schemas import Session
from sims.clients.backend import BackendClient
from sims.clients.payloads import parse_date, ref_id, unwrap_list
from sims.core.enums import AttendanceStatus, PersonType, UserRole
from sims.core.exceptions import ServiceError, UpstreamError

from .schemas import (
    AttendanceEntry,
    AttendanceHistoryRecord,
    AttendanceOptions,
    AttendanceStats,
    BulkAttendanceRequest,
    DaySheet,
    MonthlyReport,
    StatusChangeRequest,
    StatusOption,
)
from .statuses import (
    DEFAULT_CHECK_IN,
    DEFAULT_CHECK_OUT,
    LEAVE_COMMENTS,
    STATUS_KEYS,
    allowed_statuses,
    apply_status,
    build_bulk_records,
    field_rules,
    parse_status,
)

logger = logging.getLogger(__name__)

_BACKEND_PREFIX = {
    PersonType.STUDENTS: "/api/student-attendance",
    PersonType.TEACHERS: "/api/teacher-attendance",
}
_ID_KEY = {PersonType.STUDENTS: "student_id", PersonType.TEACHERS: "teacher_id"}


def _time(value: Any) -> Optional[str]:
    # Backend may send "09:00:00"; the day sheet works in HH:MM.
    return str(value)[:5] if value else None


def _status_or_unset(value: Any) -> AttendanceStatus:
    try:
        return parse_status(value)
    except ValueError:
        logger.warning("Ignoring unknown attendance status from backend: %r", value)
        return AttendanceStatus.UNSET


# --- Options / status changes ---
def get_options(person_type: PersonType) -> AttendanceOptions:
    return AttendanceOptions(
        person_type=person_type,
        statuses=[StatusOption(status=s, rules=field_rules(s)) for s in allowed_statuses(person_type)],
        comments=list(LEAVE_COMMENTS),
        default_check_in=DEFAULT_CHECK_IN,
        default_check_out=DEFAULT_CHECK_OUT,
    )


def change_status(person_type: PersonType, payload: StatusChangeRequest) -> AttendanceEntry:
    try:
        return apply_status(
            payload.current,
            payload.status,
            person_type,
            check_in=payload.check_in,
            check_out=payload.check_out,
            comment=payload.comment,
        )
    except ValueError as e:
        raise ServiceError(str(e), status.HTTP_400_BAD_REQUEST)


# --- Day sheet ---
def _entry_from_backend(raw: Dict[str, Any]) -> AttendanceEntry:
    return AttendanceEntry(
        status=_status_or_unset(raw.get("status")),
        check_in=_time(raw.get("checkIn")),
        check_out=_time(raw.get("checkOut")),
        comment=raw.get("comment") or "",
    )


def day_entries_from_backend(data: Any, person_type: PersonType) -> Dict[str, AttendanceEntry]:
    """The backend answers either with a list of records or with an object keyed by person id."""
    id_key = _ID_KEY[person_type]
    entries: Dict[str, AttendanceEntry] = {}
    if isinstance(data, list):
        for record in data:
            if not isinstance(record, dict):
                continue
            person_id = ref_id(record.get(id_key)) or ref_id(record.get("id"))
            if person_id:
                entries[person_id] = _entry_from_backend(record)
    elif isinstance(data, dict):
        for person_id, record in data.items():
            if isinstance(record, dict):
                entries[str(person_id)] = _entry_from_backend(record)
    return entries


async def get_day_sheet(
    backend: BackendClient,
    person_type: PersonType,
    day: date,
    class_name: Optional[str] = None,
    section: Optional[str] = None,
) -> DaySheet:
    params: Dict[str, Any] = {"date": day.isoformat()}
    if person_type == PersonType.STUDENTS:
        params.update({"class": class_name, "section": section})
    try:
        data = await backend.get(
            f"{_BACKEND_PREFIX[person_type]}/bulk/date",
            params=params,
            error_message="Failed to fetch attendance",
        )
    except UpstreamError as e:
        if e.upstream_status != status.HTTP_404_NOT_FOUND:
            raise
        # Nothing recorded for that date yet.
        data = None
    return DaySheet(date=day, person_type=person_type, entries=day_entries_from_backend(data, person_type))


async def save_bulk_attendance(
    backend: BackendClient,
    session: Session,
    person_type: PersonType,
    payload: BulkAttendanceRequest,
) -> int:
    """Save every marked row for the date. Returns how many rows were sent."""
    try:
        records = build_bulk_records(payload.entries, person_type, session.profile_id)
    except ValueError as e:
        raise ServiceError(str(e), status.HTTP_400_BAD_REQUEST)
    if not records:
        return 0
    await backend.post(
        f"{_BACKEND_PREFIX[person_type]}/bulk",
        json={"date": payload.date.isoformat(), "records": records},
        error_message="Failed to save attendance. Please try again.",
    )
    logger.info("Saved %d %s attendance rows for %s", len(records), person_type.value, payload.date)
    return len(records)


# --- Student history ---
def history_from_backend(data: Any) -> List[AttendanceHistoryRecord]:
    result = []
    for raw in data if isinstance(data, list) else []:
        if not isinstance(raw, dict):
            continue
        student = raw.get("student_id")
        student = student if isinstance(student, dict) else {}
        result.append(
            AttendanceHistoryRecord(
                id=ref_id(raw.get("_id") or raw.get("id")) or None,
                student_id=ref_id(raw.get("student_id")),
                student_name=student.get("full_name") or "Unknown Student",
                admission_number=student.get("admission_number") or "N/A",
                date=parse_date(raw.get("date")),
                status=_status_or_unset(raw.get("status")),
                check_in=_time(raw.get("checkIn")),
                check_out=_time(raw.get("checkOut")),
                reason=raw.get("comment") or "",
            )
        )
    return result


def filter_history(
    records: Iterable[AttendanceHistoryRecord],
    year: Optional[int] = None,
    month: Optional[int] = None,
    status_filter: Optional[AttendanceStatus] = None,
    search: Optional[str] = None,
) -> List[AttendanceHistoryRecord]:
    needle = (search or "").strip().lower()
    result = []
    for r in records:
        if year is not None and (r.date is None or r.date.year != year):
            continue
        if month is not None and (r.date is None or r.date.month != month):
            continue
        if status_filter is not None and r.status != status_filter:
            continue
        if needle and needle not in r.student_name.lower() and needle not in r.admission_number.lower():
            continue
        result.append(r)
    return result


def _history_path(session: Session, student_id: str) -> str:
    scope = "under-my-parent" if session.role == UserRole.PARENT else "under-my-admin"
    return f"/api/student-attendance/student/{student_id}/{scope}"


async def get_student_history(
    backend: BackendClient, session: Session, student_id: str
) -> List[AttendanceHistoryRecord]:
    data = await backend.get(
        _history_path(session, student_id), error_message="Failed to fetch attendance data"
    )
    return history_from_backend(unwrap_list(data, "records"))


async def list_student_attendance(backend: BackendClient) -> List[AttendanceHistoryRecord]:
    data = await backend.get(
        "/api/student-attendance/under-my-admin", error_message="Failed to fetch attendance data"
    )
    return history_from_backend(unwrap_list(data, "records"))


def compute_stats(records: Iterable[AttendanceHistoryRecord]) -> AttendanceStats:
    records = list(records)
    counts = {s: 0 for s in AttendanceStatus}
    for r in records:
        counts[r.status] += 1
    present = counts[AttendanceStatus.PRESENT]
    late = counts[AttendanceStatus.LATE]
    half_day = counts[AttendanceStatus.HALF_DAY]
    total = present + counts[AttendanceStatus.ABSENT] + late + half_day + counts[AttendanceStatus.LEAVE]
    percentage = 0.0
    if total:
        ratio = Decimal(present + late + half_day) * 100 / Decimal(total)
        percentage = float(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
    return AttendanceStats(
        present=present,
        absent=counts[AttendanceStatus.ABSENT],
        late=late,
        half_day=half_day,
        leave=counts[AttendanceStatus.LEAVE],
        total_students=len({r.student_id for r in records}),
        total_records=total,
        attendance_percentage=percentage,
    )


async def get_monthly_report(
    backend: BackendClient, student_id: str, month: int, year: int
) -> MonthlyReport:
    data = await backend.get(
        "/api/student-attendance/monthly-report",
        params={"studentId": student_id, "month": month, "year": year},
        error_message="Failed to fetch monthly attendance report",
    )
    data = data if isinstance(data, dict) else {}
    records = history_from_backend(data.get("records"))
    summary = data.get("summary")
    return MonthlyReport(
        student_id=student_id,
        month=month,
        year=year,
        records=records,
        stats=compute_stats(records),
        summary=summary if isinstance(summary, dict) else None,
    )


EXPORT_HEADERS = ["Date", "Student Name", "Admission Number", "Status", "Check In", "Check Out", "Reason"]


def export_attendance_csv(records: Iterable[AttendanceHistoryRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for r in records:
        writer.writerow(
            [
                r.date.isoformat() if r.date else "",
                r.student_name,
                r.admission_number,
                STATUS_KEYS[r.status],
                r.check_in or "",
                r.check_out or "",
                r.reason,
            ]
        )
    return buffer.getvalue()
