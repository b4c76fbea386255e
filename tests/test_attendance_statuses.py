import pytest

from sims.api.v1.attendance.schemas import AttendanceEntry
from sims.api.v1.attendance.statuses import (
    NOT_INFORMED,
    apply_status,
    build_bulk_records,
    field_rules,
    parse_status,
)
from sims.core.enums import AttendanceStatus, PersonType

FILLED = AttendanceEntry(status=AttendanceStatus.HALF_DAY, check_in="10:15", check_out="13:30", comment="Vacation")


@pytest.mark.parametrize("person_type", list(PersonType))
@pytest.mark.parametrize("previous", [None, FILLED])
def test_present_clears_every_auxiliary_field(person_type, previous) -> None:
    entry = apply_status(previous, AttendanceStatus.PRESENT, person_type, "11:00", "12:30", "Other")

    assert entry.status == AttendanceStatus.PRESENT
    assert (entry.check_in, entry.check_out, entry.comment) == (None, None, None)


@pytest.mark.parametrize("comment", [None, "Sick Leave"])
def test_absent_always_not_informed(comment) -> None:
    entry = apply_status(FILLED, AttendanceStatus.ABSENT, PersonType.STUDENTS, comment=comment)

    assert entry.comment == NOT_INFORMED
    assert entry.check_in is None
    assert entry.check_out is None


def test_late_teacher_defaults_check_in_then_present_clears_it() -> None:
    late = apply_status(None, AttendanceStatus.LATE, PersonType.TEACHERS)
    assert late.check_in == "09:00"
    assert late.check_out is None

    present = apply_status(late, AttendanceStatus.PRESENT, PersonType.TEACHERS)
    assert present.check_in is None


def test_late_keeps_previous_or_provided_check_in() -> None:
    previous = AttendanceEntry(status=AttendanceStatus.LATE, check_in="09:40")

    assert apply_status(previous, AttendanceStatus.LATE, PersonType.TEACHERS).check_in == "09:40"
    assert apply_status(previous, AttendanceStatus.LATE, PersonType.TEACHERS, check_in="10:05").check_in == "10:05"


def test_provided_blank_value_is_not_replaced_by_previous() -> None:
    previous = AttendanceEntry(status=AttendanceStatus.HALF_DAY, check_out="13:30")

    entry = apply_status(previous, AttendanceStatus.HALF_DAY, PersonType.STUDENTS, check_out="")
    assert entry.check_out == ""


def test_late_is_not_available_for_students() -> None:
    with pytest.raises(ValueError):
        apply_status(None, AttendanceStatus.LATE, PersonType.STUDENTS)


def test_half_day_defaults_check_out_and_blank_comment() -> None:
    entry = apply_status(None, AttendanceStatus.HALF_DAY, PersonType.STUDENTS)

    assert entry.check_out == "12:00"
    assert entry.comment == ""
    assert entry.check_in is None


def test_half_day_keeps_previous_values() -> None:
    entry = apply_status(FILLED, AttendanceStatus.HALF_DAY, PersonType.STUDENTS)

    assert entry.check_out == "13:30"
    assert entry.comment == "Vacation"
    assert entry.check_in is None


def test_leave_uses_provided_comment() -> None:
    entry = apply_status(FILLED, AttendanceStatus.LEAVE, PersonType.STUDENTS, comment="Family Event")

    assert entry.comment == "Family Event"
    assert entry.check_out is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("present", AttendanceStatus.PRESENT),
        ("Half Day", AttendanceStatus.HALF_DAY),
        ("half-day", AttendanceStatus.HALF_DAY),
        ("HALFDAY", AttendanceStatus.HALF_DAY),
        ("", AttendanceStatus.UNSET),
        (None, AttendanceStatus.UNSET),
    ],
)
def test_parse_status(raw, expected) -> None:
    assert parse_status(raw) == expected


def test_parse_status_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        parse_status("holiday")


def test_field_rules() -> None:
    assert field_rules(AttendanceStatus.ABSENT).fixed_comment == NOT_INFORMED
    assert field_rules(AttendanceStatus.ABSENT).comment_editable is False
    assert field_rules(AttendanceStatus.LATE).check_in is True
    assert field_rules(AttendanceStatus.HALF_DAY).check_out is True
    assert field_rules(AttendanceStatus.LEAVE).comment_editable is True
    assert not field_rules(AttendanceStatus.PRESENT).comment


def test_bulk_records_omit_unset_rows_and_reapply_rules() -> None:
    entries = {
        "s1": AttendanceEntry(status=AttendanceStatus.PRESENT, comment="stale"),
        "s2": AttendanceEntry(),
        "s3": AttendanceEntry(status=AttendanceStatus.ABSENT),
    }
    records = build_bulk_records(entries, PersonType.STUDENTS, admin_id="admin-1")

    assert [r["student_id"] for r in records] == ["s1", "s3"]
    assert records[0]["comment"] is None
    assert records[1]["comment"] == NOT_INFORMED
    assert all(r["admin_id"] == "admin-1" for r in records)


def test_bulk_records_use_teacher_id_for_teachers() -> None:
    records = build_bulk_records(
        {"t1": AttendanceEntry(status=AttendanceStatus.LATE)}, PersonType.TEACHERS
    )
    assert records == [
        {
            "teacher_id": "t1",
            "status": "Late",
            "checkIn": "09:00",
            "checkOut": None,
            "comment": None,
            "admin_id": "",
        }
    ]
