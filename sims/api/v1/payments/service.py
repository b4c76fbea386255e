"""Payment details service: listing, filtering, export and admin verification."""

import csv
import io
import logging
from typing import Any, Dict, Iterable, List, Optional

from fastapi import status

from sims.clients.backend import BackendClient
from sims.clients.payloads import parse_date, ref_id, unwrap, unwrap_list
from sims.core.enums import PaymentVerificationStatus
from sims.core.exceptions import ServiceError

from .schemas import PaymentDetail

logger = logging.getLogger(__name__)

_STATUS_ALIASES = {
    "verified": PaymentVerificationStatus.VERIFIED,
    "rejected": PaymentVerificationStatus.REJECTED,
    "not verified": PaymentVerificationStatus.REJECTED,
}


def _verification_status(value: Any) -> PaymentVerificationStatus:
    # Anything unrecognised ("Verification Pending", blank) is still awaiting review.
    return _STATUS_ALIASES.get(str(value or "").strip().lower(), PaymentVerificationStatus.PENDING)


def payment_from_backend(raw: Dict[str, Any]) -> PaymentDetail:
    student = raw.get("student_id")
    student_doc = student if isinstance(student, dict) else {}
    amount = raw.get("amount_paid", raw.get("amount"))
    return PaymentDetail(
        id=ref_id(raw.get("_id") or raw.get("id")) or None,
        invoice_id=raw.get("invoice_id") or None,
        fee_id=ref_id(raw.get("fee_id")) or None,
        student_id=ref_id(student) or str(raw.get("studentId") or ""),
        student_name=student_doc.get("full_name") or raw.get("student_name") or raw.get("studentName") or "",
        class_name=str(raw.get("class") or student_doc.get("class") or ""),
        section=str(raw.get("section") or student_doc.get("section") or ""),
        term=raw.get("term") or None,
        amount_paid=float(amount or 0),
        payment_date=parse_date(raw.get("payment_date") or raw.get("paymentDate")),
        payment_method=raw.get("payment_method") or raw.get("paymentMethod") or None,
        transaction_id=raw.get("transaction_id") or raw.get("transactionId") or None,
        status=_verification_status(raw.get("status")),
    )


def _payments(data: Any) -> List[PaymentDetail]:
    return [payment_from_backend(item) for item in unwrap_list(data, "payments")]


def filter_payments(
    payments: Iterable[PaymentDetail],
    class_name: Optional[str] = None,
    section: Optional[str] = None,
    status_filter: Optional[PaymentVerificationStatus] = None,
    search: Optional[str] = None,
) -> List[PaymentDetail]:
    needle = (search or "").strip().lower()
    result = []
    for p in payments:
        if class_name and p.class_name != class_name:
            continue
        if section and p.section != section:
            continue
        if status_filter and p.status != status_filter:
            continue
        if needle and not any(
            needle in (value or "").lower() for value in (p.student_name, p.student_id, p.transaction_id)
        ):
            continue
        result.append(p)
    return result


async def list_payments(backend: BackendClient, **filters: Any) -> List[PaymentDetail]:
    data = await backend.get("/api/payment-details", error_message="Failed to fetch payment records.")
    return filter_payments(_payments(data), **filters)


async def list_my_payments(backend: BackendClient) -> List[PaymentDetail]:
    data = await backend.get(
        "/api/payment-details/my-payments", error_message="Failed to fetch payment records."
    )
    return _payments(data)


async def list_student_payments(backend: BackendClient, student_id: str) -> List[PaymentDetail]:
    data = await backend.get(
        f"/api/payment-details/student/{student_id}", error_message="Failed to fetch payment records."
    )
    return _payments(data)


async def list_fee_payments(backend: BackendClient, fee_id: str) -> List[PaymentDetail]:
    data = await backend.get(
        f"/api/payment-details/fee/{fee_id}", error_message="Failed to fetch payment records."
    )
    return _payments(data)


async def get_payment_by_transaction(backend: BackendClient, transaction_id: str) -> PaymentDetail:
    data = unwrap(
        await backend.get(
            f"/api/payment-details/transaction/{transaction_id}",
            error_message="Payment not found",
        ),
        "payment",
    )
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict) or not data:
        raise ServiceError("Payment not found", status.HTTP_404_NOT_FOUND)
    return payment_from_backend(data)


async def update_payment_status(
    backend: BackendClient, payment_id: str, new_status: PaymentVerificationStatus
) -> Optional[PaymentDetail]:
    data = unwrap(
        await backend.patch(
            f"/api/payment-details/{payment_id}/status",
            json={"status": new_status.value},
            error_message="Failed to update payment status.",
        ),
        "payment",
    )
    logger.info("Payment %s marked %s", payment_id, new_status.value)
    if isinstance(data, dict) and (data.get("_id") or data.get("id")):
        return payment_from_backend(data)
    return None


EXPORT_HEADERS = [
    "Payment ID", "Student ID", "Student Name", "Class", "Section", "Term", "Amount",
    "Payment Date", "Payment Method", "Transaction ID", "Status",
]


def export_payments_csv(payments: Iterable[PaymentDetail]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for p in payments:
        writer.writerow(
            [
                p.id or "",
                p.student_id,
                p.student_name,
                p.class_name,
                p.section,
                p.term or "",
                p.amount_paid,
                p.payment_date.isoformat() if p.payment_date else "",
                p.payment_method or "",
                p.transaction_id or "",
                p.status.value,
            ]
        )
    return buffer.getvalue()
