"""Attendance status field rules.

Each status decides which auxiliary fields (check-in, check-out, comment) a
row carries. Changing the status resets every field the new status does not
use, so stale values never survive a transition.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from sims.core.enums import AttendanceStatus, PersonType

from .schemas import AttendanceEntry, FieldRules

NOT_INFORMED = "Not Informed"
DEFAULT_CHECK_IN = "09:00"
DEFAULT_CHECK_OUT = "12:00"
LEAVE_COMMENTS: Tuple[str, ...] = ("", "Sick Leave", "Family Event", "Vacation", "Emergency", "Other")

STUDENT_STATUSES: Tuple[AttendanceStatus, ...] = (
    AttendanceStatus.UNSET,
    AttendanceStatus.PRESENT,
    AttendanceStatus.ABSENT,
    AttendanceStatus.HALF_DAY,
    AttendanceStatus.LEAVE,
)
TEACHER_STATUSES: Tuple[AttendanceStatus, ...] = (
    AttendanceStatus.UNSET,
    AttendanceStatus.PRESENT,
    AttendanceStatus.ABSENT,
    AttendanceStatus.LATE,
    AttendanceStatus.HALF_DAY,
    AttendanceStatus.LEAVE,
)

# Spellings seen from the backend and older clients.
_ALIASES = {
    "half-day": AttendanceStatus.HALF_DAY,
    "halfday": AttendanceStatus.HALF_DAY,
    "half_day": AttendanceStatus.HALF_DAY,
}
_BY_NAME = {s.value.lower(): s for s in AttendanceStatus}

_RULES: Dict[AttendanceStatus, FieldRules] = {
    AttendanceStatus.UNSET: FieldRules(),
    AttendanceStatus.PRESENT: FieldRules(),
    AttendanceStatus.ABSENT: FieldRules(comment=True, fixed_comment=NOT_INFORMED),
    AttendanceStatus.LATE: FieldRules(check_in=True),
    AttendanceStatus.HALF_DAY: FieldRules(check_out=True, comment=True, comment_editable=True),
    AttendanceStatus.LEAVE: FieldRules(comment=True, comment_editable=True),
}

# Keys used in history filters and CSV exports.
STATUS_KEYS = {
    AttendanceStatus.UNSET: "",
    AttendanceStatus.PRESENT: "present",
    AttendanceStatus.ABSENT: "absent",
    AttendanceStatus.LATE: "late",
    AttendanceStatus.HALF_DAY: "half-day",
    AttendanceStatus.LEAVE: "leave",
}


def parse_status(value: Any) -> AttendanceStatus:
    """Case-insensitive status parse. None and blank mean unset."""
    if isinstance(value, AttendanceStatus):
        return value
    text = " ".join(str(value or "").split()).lower()
    status = _BY_NAME.get(text, _ALIASES.get(text))
    if status is None:
        raise ValueError(f"Unknown attendance status: {value!r}")
    return status


def allowed_statuses(person_type: PersonType) -> Tuple[AttendanceStatus, ...]:
    return TEACHER_STATUSES if person_type == PersonType.TEACHERS else STUDENT_STATUSES


def field_rules(status: AttendanceStatus) -> FieldRules:
    return _RULES[status]


def _first(provided: Optional[str], previous: Optional[str], default: str) -> str:
    # An explicitly provided value wins even when blank.
    if provided is not None:
        return provided
    return previous or default


def apply_status(
    current: Optional[AttendanceEntry],
    status: AttendanceStatus,
    person_type: PersonType,
    check_in: Optional[str] = None,
    check_out: Optional[str] = None,
    comment: Optional[str] = None,
) -> AttendanceEntry:
    """Entry after selecting status; provided values win over the previous ones, then defaults."""
    if status not in allowed_statuses(person_type):
        raise ValueError(f"Status '{status.value}' is not available for {person_type.value}")
    current = current or AttendanceEntry()

    if status == AttendanceStatus.ABSENT:
        return AttendanceEntry(status=status, comment=NOT_INFORMED)
    if status == AttendanceStatus.LATE:
        return AttendanceEntry(status=status, check_in=_first(check_in, current.check_in, DEFAULT_CHECK_IN))
    if status == AttendanceStatus.HALF_DAY:
        return AttendanceEntry(
            status=status,
            check_out=_first(check_out, current.check_out, DEFAULT_CHECK_OUT),
            comment=comment if comment is not None else (current.comment or ""),
        )
    if status == AttendanceStatus.LEAVE:
        return AttendanceEntry(
            status=status,
            comment=comment if comment is not None else (current.comment or ""),
        )
    # Present and unset carry no auxiliary fields.
    return AttendanceEntry(status=status)


def build_bulk_records(
    entries: Mapping[str, AttendanceEntry],
    person_type: PersonType,
    admin_id: str = "",
) -> List[Dict[str, Any]]:
    """Rows for a bulk save. Rows without a status are left out."""
    id_key = "teacher_id" if person_type == PersonType.TEACHERS else "student_id"
    records = []
    for person_id, entry in entries.items():
        if entry.status == AttendanceStatus.UNSET:
            continue
        # Re-applying the status drops any field the client should not have sent.
        entry = apply_status(
            entry, entry.status, person_type, entry.check_in, entry.check_out, entry.comment
        )
        records.append(
            {
                id_key: person_id,
                "status": entry.status.value,
                "checkIn": entry.check_in,
                "checkOut": entry.check_out,
                "comment": entry.comment,
                "admin_id": admin_id,
            }
        )
    return records
