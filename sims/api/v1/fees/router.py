"""Fees router: fee records with three installment terms, stats, export, parent payments."""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from sims.auth.dependencies import get_current_session
from sims.auth.rbac import require_admin, require_roles
from sims.auth.schemas import Session
from sims.clients.backend import BackendClient, get_backend
from sims.core.enums import TermStatus, UserRole
from sims.core.exceptions import ServiceError
from sims.core.schemas import ActionResult

from .schemas import (
    ChildFees,
    FeeCreate,
    FeePreviewRequest,
    FeeRecord,
    FeeStats,
    FeeUpdate,
    TermPaymentCreate,
)
from . import service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


class FeeFilters:
    def __init__(
        self,
        class_name: Optional[str] = Query(None, alias="class"),
        section: Optional[str] = Query(None),
        fee_status: Optional[TermStatus] = Query(None, alias="status", description="Paid, Pending or Overdue"),
        search: Optional[str] = Query(None, description="Student name or id"),
    ) -> None:
        self.class_name = class_name
        self.section = section
        self.fee_status = fee_status
        self.search = search


async def _filtered_fees(backend: BackendClient, filters: FeeFilters) -> List[FeeRecord]:
    return await service.list_fees(
        backend,
        class_name=filters.class_name,
        section=filters.section,
        status_filter=filters.fee_status,
        search=filters.search,
    )


@router.get(
    "",
    response_model=List[FeeRecord],
    dependencies=[Depends(require_admin)],
)
async def list_fees(
    filters: FeeFilters = Depends(),
    backend: BackendClient = Depends(get_backend),
) -> List[FeeRecord]:
    try:
        return await _filtered_fees(backend, filters)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/stats",
    response_model=FeeStats,
    dependencies=[Depends(require_admin)],
)
async def get_fee_stats(
    filters: FeeFilters = Depends(),
    backend: BackendClient = Depends(get_backend),
) -> FeeStats:
    try:
        return service.compute_fee_stats(await _filtered_fees(backend, filters))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/export",
    dependencies=[Depends(require_admin)],
)
async def export_fees(
    filters: FeeFilters = Depends(),
    backend: BackendClient = Depends(get_backend),
) -> Response:
    try:
        records = await _filtered_fees(backend, filters)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(
        content=service.export_fees_csv(records),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="fee_records.csv"'},
    )


@router.post(
    "/preview",
    response_model=FeeRecord,
    dependencies=[Depends(require_admin)],
)
async def preview_fee(payload: FeePreviewRequest) -> FeeRecord:
    """Recompute term and overall statuses for form state; nothing is saved."""
    try:
        return service.preview_fee(payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/my-children",
    response_model=List[ChildFees],
    dependencies=[Depends(require_roles(UserRole.PARENT))],
)
async def get_my_children_fees(
    backend: BackendClient = Depends(get_backend),
) -> List[ChildFees]:
    try:
        return await service.get_children_fees(backend)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/student/{student_id}",
    response_model=List[FeeRecord],
    dependencies=[Depends(get_current_session)],
)
async def get_student_fees(
    student_id: str,
    backend: BackendClient = Depends(get_backend),
) -> List[FeeRecord]:
    try:
        return await service.get_student_fees(backend, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
)
async def create_fee(
    payload: FeeCreate,
    backend: BackendClient = Depends(get_backend),
    session: Session = Depends(require_admin),
) -> ActionResult:
    try:
        record = await service.create_fee(backend, session, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Fee record added successfully!", data=record.model_dump(mode="json", by_alias=True))


@router.get(
    "/{fee_id}",
    response_model=FeeRecord,
    dependencies=[Depends(require_admin)],
)
async def get_fee(
    fee_id: str,
    backend: BackendClient = Depends(get_backend),
) -> FeeRecord:
    try:
        return await service.get_fee(backend, fee_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/{fee_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
async def update_fee(
    fee_id: str,
    payload: FeeUpdate,
    backend: BackendClient = Depends(get_backend),
) -> ActionResult:
    try:
        record = await service.update_fee(backend, fee_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Fee record updated successfully!", data=record.model_dump(mode="json", by_alias=True))


@router.delete(
    "/{fee_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
async def delete_fee(
    fee_id: str,
    backend: BackendClient = Depends(get_backend),
) -> ActionResult:
    try:
        await service.delete_fee(backend, fee_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Fee record deleted successfully!")


@router.post(
    "/{fee_id}/pay-term",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
)
async def pay_term(
    fee_id: str,
    payload: TermPaymentCreate,
    backend: BackendClient = Depends(get_backend),
    session: Session = Depends(require_roles(UserRole.PARENT, UserRole.STUDENT)),
) -> ActionResult:
    try:
        result: Any = await service.submit_term_payment(backend, session, fee_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(
        message="Payment submitted for verification",
        data=result if isinstance(result, (dict, list)) else None,
    )
