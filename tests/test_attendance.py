import pytest
from httpx import AsyncClient

from sims.core.enums import UserRole


def history():
    student = {"_id": "s1", "full_name": "Asha Rao", "admission_number": "ADM-7"}
    return [
        {"_id": "a1", "student_id": student, "date": "2024-05-02T00:00:00.000Z", "status": "Present"},
        {"_id": "a2", "student_id": student, "date": "2024-05-03", "status": "Absent", "comment": "Not Informed"},
        {"_id": "a3", "student_id": student, "date": "2024-05-06", "status": "half day", "checkOut": "12:00:00", "comment": "Sick Leave"},
        {"_id": "a4", "student_id": student, "date": "2024-06-01", "status": "Leave", "comment": "Vacation"},
    ]


@pytest.mark.asyncio
async def test_options_for_teachers_include_late(client: AsyncClient, auth_headers) -> None:
    response = await client.get("/api/v1/attendance/options", params={"person_type": "teachers"}, headers=auth_headers())
    assert response.status_code == 200
    data = response.json()
    assert "Late" in [s["status"] for s in data["statuses"]]
    assert data["comments"] == ["", "Sick Leave", "Family Event", "Vacation", "Emergency", "Other"]

    students = await client.get("/api/v1/attendance/options", headers=auth_headers())
    assert "Late" not in [s["status"] for s in students.json()["statuses"]]


@pytest.mark.asyncio
async def test_apply_status(client: AsyncClient, auth_headers) -> None:
    response = await client.post(
        "/api/v1/attendance/teachers/apply-status",
        json={"status": "Late", "current": {"status": "Absent", "comment": "Not Informed"}},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    assert response.json() == {"status": "Late", "check_in": "09:00", "check_out": None, "comment": None}


@pytest.mark.asyncio
async def test_apply_late_to_student_rejected(client: AsyncClient, auth_headers) -> None:
    response = await client.post(
        "/api/v1/attendance/students/apply-status",
        json={"status": "Late"},
        headers=auth_headers(),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_day_sheet_from_list(client: AsyncClient, backend, auth_headers) -> None:
    backend.add(
        "GET",
        "/api/student-attendance/bulk/date",
        [
            {"student_id": {"_id": "s1"}, "status": "Present"},
            {"student_id": "s2", "status": "Half Day", "checkOut": "12:30", "comment": "Emergency"},
        ],
    )

    response = await client.get(
        "/api/v1/attendance/students/day",
        params={"date": "2024-05-02", "class": "5", "section": "A"},
        headers=auth_headers(UserRole.TEACHER),
    )
    assert response.status_code == 200
    entries = response.json()["entries"]
    assert entries["s1"]["status"] == "Present"
    assert entries["s2"] == {"status": "Half Day", "check_in": None, "check_out": "12:30", "comment": "Emergency"}

    sent = backend.sent("GET", "/api/student-attendance/bulk/date")[0]
    assert sent.url.params["date"] == "2024-05-02"
    assert sent.url.params["class"] == "5"


@pytest.mark.asyncio
async def test_day_sheet_from_mapping_and_missing_date(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/teacher-attendance/bulk/date", {"t1": {"status": "late", "checkIn": "09:20"}})

    response = await client.get(
        "/api/v1/attendance/teachers/day", params={"date": "2024-05-02"}, headers=auth_headers()
    )
    assert response.json()["entries"]["t1"]["check_in"] == "09:20"
    assert response.json()["entries"]["t1"]["status"] == "Late"

    empty = await client.get(
        "/api/v1/attendance/students/day", params={"date": "2024-05-02"}, headers=auth_headers()
    )
    assert empty.status_code == 200
    assert empty.json()["entries"] == {}


@pytest.mark.asyncio
async def test_bulk_save_omits_unset_rows(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("POST", "/api/student-attendance/bulk", {"message": "saved"})

    response = await client.post(
        "/api/v1/attendance/students/bulk",
        json={
            "date": "2024-05-02",
            "entries": {
                "s1": {"status": "Present", "comment": "leftover"},
                "s2": {"status": ""},
                "s3": {"status": "Half Day"},
            },
        },
        headers=auth_headers(profile={"userId": "admin-2"}),
    )
    assert response.status_code == 200
    assert response.json()["data"] == {"saved": 2}

    body = backend.json_body(backend.sent("POST", "/api/student-attendance/bulk")[0])
    assert body["date"] == "2024-05-02"
    assert body["records"] == [
        {"student_id": "s1", "status": "Present", "checkIn": None, "checkOut": None, "comment": None, "admin_id": "admin-2"},
        {"student_id": "s3", "status": "Half Day", "checkIn": None, "checkOut": "12:00", "comment": "", "admin_id": "admin-2"},
    ]


@pytest.mark.asyncio
async def test_bulk_save_with_nothing_marked_sends_nothing(client: AsyncClient, backend, auth_headers) -> None:
    response = await client.post(
        "/api/v1/attendance/teachers/bulk",
        json={"date": "2024-05-02", "entries": {"t1": {"status": ""}}},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    assert response.json()["data"] == {"saved": 0}
    assert backend.requests == []


@pytest.mark.asyncio
async def test_teacher_cannot_mark_teacher_attendance(client: AsyncClient, backend, auth_headers) -> None:
    response = await client.post(
        "/api/v1/attendance/teachers/bulk",
        json={"date": "2024-05-02", "entries": {"t1": {"status": "Present"}}},
        headers=auth_headers(UserRole.TEACHER),
    )
    assert response.status_code == 403
    assert backend.requests == []


@pytest.mark.asyncio
async def test_student_history_filters_and_stats(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/student-attendance/student/s1/under-my-parent", history())
    headers = auth_headers(UserRole.PARENT)

    may = await client.get("/api/v1/attendance/students/s1", params={"year": 2024, "month": 5}, headers=headers)
    assert may.status_code == 200
    records = may.json()
    assert [r["id"] for r in records] == ["a1", "a2", "a3"]
    assert records[0]["date"] == "2024-05-02"
    assert records[2]["status"] == "Half Day"
    assert records[2]["check_out"] == "12:00"
    assert records[2]["reason"] == "Sick Leave"

    absent = await client.get("/api/v1/attendance/students/s1", params={"status": "absent"}, headers=headers)
    assert [r["id"] for r in absent.json()] == ["a2"]

    stats = (await client.get("/api/v1/attendance/students/s1/stats", headers=headers)).json()
    assert stats["present"] == 1
    assert stats["half_day"] == 1
    assert stats["total_records"] == 4
    assert stats["total_students"] == 1
    assert stats["attendance_percentage"] == 50.0


@pytest.mark.asyncio
async def test_history_uses_admin_scope_for_staff(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/student-attendance/student/s1/under-my-admin", [])

    response = await client.get("/api/v1/attendance/students/s1/stats", headers=auth_headers(UserRole.TEACHER))
    assert response.status_code == 200
    assert response.json()["attendance_percentage"] == 0.0


@pytest.mark.asyncio
async def test_export_student_attendance(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/student-attendance/student/s1/under-my-admin", history())

    response = await client.get("/api/v1/attendance/students/s1/export", headers=auth_headers())
    assert response.status_code == 200
    lines = response.text.strip().split("\n")
    assert lines[0] == "Date,Student Name,Admission Number,Status,Check In,Check Out,Reason"
    assert lines[3] == "2024-05-06,Asha Rao,ADM-7,half-day,,12:00,Sick Leave"


@pytest.mark.asyncio
async def test_monthly_report(client: AsyncClient, backend, auth_headers) -> None:
    backend.add(
        "GET",
        "/api/student-attendance/monthly-report",
        {"records": history()[:3], "summary": {"workingDays": 20}},
    )

    response = await client.get(
        "/api/v1/attendance/students/monthly-report",
        params={"student_id": "s1", "month": 5, "year": 2024},
        headers=auth_headers(UserRole.STUDENT),
    )
    assert response.status_code == 200
    data = response.json()
    assert len(data["records"]) == 3
    assert data["summary"] == {"workingDays": 20}
    # 1 present + 1 half day out of 3
    assert data["stats"]["attendance_percentage"] == 66.7

    sent = backend.sent("GET", "/api/student-attendance/monthly-report")[0]
    assert sent.url.params["studentId"] == "s1"


@pytest.mark.asyncio
async def test_day_sheet_keeps_long_backend_comment(client: AsyncClient, backend, auth_headers) -> None:
    backend.add(
        "GET",
        "/api/student-attendance/bulk/date",
        [{"student_id": "s1", "status": "Leave", "comment": "x" * 250}],
    )

    response = await client.get(
        "/api/v1/attendance/students/day", params={"date": "2024-05-02"}, headers=auth_headers()
    )
    assert response.status_code == 200
    assert response.json()["entries"]["s1"]["comment"] == "x" * 250


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "entry",
    [
        {"status": "Half Day", "checkOut": "banana"},
        {"status": "Leave", "comment": "y" * 201},
    ],
)
async def test_bulk_save_validates_submitted_rows(client: AsyncClient, backend, auth_headers, entry) -> None:
    response = await client.post(
        "/api/v1/attendance/students/bulk",
        json={"date": "2024-05-02", "entries": {"s1": entry}},
        headers=auth_headers(),
    )
    assert response.status_code == 422
    assert backend.requests == []
