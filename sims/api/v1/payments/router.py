"""Payment details router: parent-submitted term payments and admin verification."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from sims.auth.dependencies import get_current_session
from sims.auth.rbac import require_admin, require_roles
from sims.clients.backend import BackendClient, get_backend
from sims.core.enums import PaymentVerificationStatus, UserRole
from sims.core.exceptions import ServiceError
from sims.core.schemas import ActionResult

from .schemas import PaymentDetail, PaymentStatusUpdate
from . import service

router = APIRouter(prefix="/api/v1/payment-details", tags=["payment-details"])


class PaymentFilters:
    def __init__(
        self,
        class_name: Optional[str] = Query(None, alias="class"),
        section: Optional[str] = Query(None),
        payment_status: Optional[PaymentVerificationStatus] = Query(None, alias="status"),
        search: Optional[str] = Query(None, description="Student name, student id or transaction id"),
    ) -> None:
        self.values = {
            "class_name": class_name,
            "section": section,
            "status_filter": payment_status,
            "search": search,
        }


@router.get(
    "",
    response_model=List[PaymentDetail],
    dependencies=[Depends(require_admin)],
)
async def list_payments(
    filters: PaymentFilters = Depends(),
    backend: BackendClient = Depends(get_backend),
) -> List[PaymentDetail]:
    try:
        return await service.list_payments(backend, **filters.values)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/export",
    dependencies=[Depends(require_admin)],
)
async def export_payments(
    filters: PaymentFilters = Depends(),
    backend: BackendClient = Depends(get_backend),
) -> Response:
    try:
        payments = await service.list_payments(backend, **filters.values)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(
        content=service.export_payments_csv(payments),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="payment_records.csv"'},
    )


@router.get(
    "/my-payments",
    response_model=List[PaymentDetail],
    dependencies=[Depends(require_roles(UserRole.PARENT))],
)
async def list_my_payments(
    backend: BackendClient = Depends(get_backend),
) -> List[PaymentDetail]:
    try:
        return await service.list_my_payments(backend)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/student/{student_id}",
    response_model=List[PaymentDetail],
    dependencies=[Depends(get_current_session)],
)
async def list_student_payments(
    student_id: str,
    backend: BackendClient = Depends(get_backend),
) -> List[PaymentDetail]:
    try:
        return await service.list_student_payments(backend, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/fee/{fee_id}",
    response_model=List[PaymentDetail],
    dependencies=[Depends(get_current_session)],
)
async def list_fee_payments(
    fee_id: str,
    backend: BackendClient = Depends(get_backend),
) -> List[PaymentDetail]:
    try:
        return await service.list_fee_payments(backend, fee_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/transaction/{transaction_id}",
    response_model=PaymentDetail,
    dependencies=[Depends(get_current_session)],
)
async def get_payment_by_transaction(
    transaction_id: str,
    backend: BackendClient = Depends(get_backend),
) -> PaymentDetail:
    try:
        return await service.get_payment_by_transaction(backend, transaction_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "/{payment_id}/status",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
async def update_payment_status(
    payment_id: str,
    payload: PaymentStatusUpdate,
    backend: BackendClient = Depends(get_backend),
) -> ActionResult:
    try:
        payment = await service.update_payment_status(backend, payment_id, payload.status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(
        message=f"Payment status updated to {payload.status.value}",
        data=payment.model_dump(mode="json", by_alias=True) if payment else {"id": payment_id, "status": payload.status.value},
    )
