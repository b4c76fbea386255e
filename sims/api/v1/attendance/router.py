"""Attendance router: per-date sheets for students and teachers, student history and reports."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from sims.auth.rbac import require_roles
from sims.auth.schemas import Session
from sims.clients.backend import BackendClient, get_backend
from sims.core.enums import AttendanceStatus, PersonType, UserRole
from sims.core.exceptions import ServiceError
from sims.core.schemas import ActionResult

from .schemas import (
    AttendanceEntry,
    AttendanceHistoryRecord,
    AttendanceOptions,
    AttendanceStats,
    BulkAttendanceRequest,
    DaySheet,
    MonthlyReport,
    StatusChangeRequest,
)
from .statuses import parse_status
from . import service

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])

require_sheet_editor = require_roles(UserRole.ADMIN, UserRole.TEACHER)
require_history_reader = require_roles(UserRole.ADMIN, UserRole.TEACHER, UserRole.PARENT, UserRole.STUDENT)


def _check_sheet_access(session: Session, person_type: PersonType) -> None:
    # Teachers mark students only; teacher attendance is an admin task.
    if person_type == PersonType.TEACHERS and session.role == UserRole.TEACHER:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


class HistoryFilters:
    def __init__(
        self,
        year: Optional[int] = Query(None, ge=2000, le=2100),
        month: Optional[int] = Query(None, ge=1, le=12),
        status_filter: Optional[str] = Query(None, alias="status", description="present, absent, late, half-day or leave"),
        search: Optional[str] = Query(None, description="Student name or admission number"),
    ) -> None:
        self.year = year
        self.month = month
        self.search = search
        self.status: Optional[AttendanceStatus] = None
        if status_filter and status_filter.lower() != "all":
            try:
                self.status = parse_status(status_filter)
            except ValueError as e:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    def apply(self, records: List[AttendanceHistoryRecord]) -> List[AttendanceHistoryRecord]:
        return service.filter_history(records, self.year, self.month, self.status, self.search)


@router.get(
    "/options",
    response_model=AttendanceOptions,
    dependencies=[Depends(require_sheet_editor)],
)
async def get_attendance_options(
    person_type: PersonType = Query(PersonType.STUDENTS),
) -> AttendanceOptions:
    return service.get_options(person_type)


@router.post(
    "/{person_type}/apply-status",
    response_model=AttendanceEntry,
    response_model_by_alias=False,
    dependencies=[Depends(require_sheet_editor)],
)
async def apply_attendance_status(
    person_type: PersonType,
    payload: StatusChangeRequest,
) -> AttendanceEntry:
    """Row state after a status selection; nothing is saved."""
    try:
        return service.change_status(person_type, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{person_type}/day",
    response_model=DaySheet,
    response_model_by_alias=False,
)
async def get_day_sheet(
    person_type: PersonType,
    day: date = Query(..., alias="date"),
    class_name: Optional[str] = Query(None, alias="class"),
    section: Optional[str] = Query(None),
    backend: BackendClient = Depends(get_backend),
    session: Session = Depends(require_sheet_editor),
) -> DaySheet:
    _check_sheet_access(session, person_type)
    try:
        return await service.get_day_sheet(backend, person_type, day, class_name, section)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{person_type}/bulk",
    response_model=ActionResult,
)
async def save_bulk_attendance(
    person_type: PersonType,
    payload: BulkAttendanceRequest,
    backend: BackendClient = Depends(get_backend),
    session: Session = Depends(require_sheet_editor),
) -> ActionResult:
    _check_sheet_access(session, person_type)
    try:
        saved = await service.save_bulk_attendance(backend, session, person_type, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    message = "Attendance saved successfully!" if saved else "No attendance marked; nothing was saved."
    return ActionResult(message=message, data={"saved": saved})


# --- Student history ---
@router.get(
    "/students",
    response_model=List[AttendanceHistoryRecord],
    dependencies=[Depends(require_sheet_editor)],
)
async def list_student_attendance(
    filters: HistoryFilters = Depends(),
    backend: BackendClient = Depends(get_backend),
) -> List[AttendanceHistoryRecord]:
    try:
        return filters.apply(await service.list_student_attendance(backend))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/students/monthly-report",
    response_model=MonthlyReport,
    dependencies=[Depends(require_history_reader)],
)
async def get_monthly_report(
    student_id: str = Query(..., min_length=1),
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2100),
    backend: BackendClient = Depends(get_backend),
) -> MonthlyReport:
    try:
        return await service.get_monthly_report(backend, student_id, month, year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/students/{student_id}",
    response_model=List[AttendanceHistoryRecord],
)
async def get_student_attendance(
    student_id: str,
    filters: HistoryFilters = Depends(),
    backend: BackendClient = Depends(get_backend),
    session: Session = Depends(require_history_reader),
) -> List[AttendanceHistoryRecord]:
    try:
        return filters.apply(await service.get_student_history(backend, session, student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/students/{student_id}/stats",
    response_model=AttendanceStats,
)
async def get_student_attendance_stats(
    student_id: str,
    filters: HistoryFilters = Depends(),
    backend: BackendClient = Depends(get_backend),
    session: Session = Depends(require_history_reader),
) -> AttendanceStats:
    try:
        records = filters.apply(await service.get_student_history(backend, session, student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return service.compute_stats(records)


@router.get("/students/{student_id}/export")
async def export_student_attendance(
    student_id: str,
    filters: HistoryFilters = Depends(),
    backend: BackendClient = Depends(get_backend),
    session: Session = Depends(require_history_reader),
) -> Response:
    try:
        records = filters.apply(await service.get_student_history(backend, session, student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    filename = f"attendance_{date.today().isoformat()}.csv"
    return Response(
        content=service.export_attendance_csv(records),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
