"""Fees service: read models recomputed from backend records, term edits, stats and export."""

import asyncio
import csv
import io
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from fastapi import status

from sims.auth.schemas import Session
from sims.clients.backend import BackendClient
from sims.clients.payloads import parse_date, ref_id, unwrap, unwrap_list
from sims.api.v1.payments import service as payment_service
from sims.api.v1.payments.schemas import PaymentDetail
from sims.core.enums import FeeTermKey, PaymentVerificationStatus, TermStatus
from sims.core.exceptions import ServiceError, UpstreamError

from .schemas import (
    ChildFees,
    FeeCreate,
    FeePreviewRequest,
    FeeRecord,
    FeeStats,
    FeeTerm,
    FeeUpdate,
    TermPaymentCreate,
    TermStats,
)
from .terms import (
    TERM_KEYS,
    TERM_LABELS,
    build_new_record,
    is_term_locked,
    latest_payment,
    paid_amount,
    paid_term_labels,
    recompute_record,
    split_amount,
    toggle_term_paid,
)

logger = logging.getLogger(__name__)

# Position of each term in the backend's flattened field names (term1Amount, ...).
_FLAT_INDEX = {FeeTermKey.FIRST: 1, FeeTermKey.SECOND: 2, FeeTermKey.THIRD: 3}


# --- Backend <-> read model ---
def _to_int(value: Any) -> int:
    if value in (None, ""):
        return 0
    try:
        return int(Decimal(str(value)))
    except ArithmeticError:
        raise ValueError(f"Not a number: {value!r}")


def _term_from_backend(raw: Dict[str, Any], key: FeeTermKey, default_amount: int) -> FeeTerm:
    nested = raw.get(f"{key.value}_term") or {}
    i = _FLAT_INDEX[key]

    def pick(nested_key: str, flat_key: str) -> Any:
        value = nested.get(nested_key)
        return value if value not in (None, "") else raw.get(f"term{i}{flat_key}")

    raw_status = pick("status", "Status")
    amount_due = pick("amount_due", "Amount")
    return FeeTerm(
        amount_due=_to_int(amount_due) if amount_due not in (None, "") else default_amount,
        paid=bool(raw.get(f"term{i}Paid")) or raw_status == TermStatus.PAID.value,
        payment_date=parse_date(pick("payment_date", "PaymentDate")),
        payment_method=pick("payment_method", "PaymentMethod") or None,
        due_date=parse_date(pick("due_date", "DueDate")),
    )


def fee_from_backend(raw: Dict[str, Any], today: Optional[date] = None) -> FeeRecord:
    """Build the read model from a backend fee document. Derived fields are never trusted."""
    amount = _to_int(raw.get("amount"))
    shares = dict(zip(TERM_KEYS, split_amount(amount)))
    student = raw.get("student_id")
    student_name = raw.get("student_name") or (student.get("full_name") if isinstance(student, dict) else "")
    record = FeeRecord(
        id=ref_id(raw.get("_id") or raw.get("id")) or None,
        student_id=ref_id(student) or str(raw.get("studentId") or ""),
        student_name=student_name or str(raw.get("studentName") or ""),
        class_name=str(raw.get("class") or ""),
        section=str(raw.get("section") or ""),
        amount=amount,
        first_term=_term_from_backend(raw, FeeTermKey.FIRST, shares[FeeTermKey.FIRST]),
        second_term=_term_from_backend(raw, FeeTermKey.SECOND, shares[FeeTermKey.SECOND]),
        third_term=_term_from_backend(raw, FeeTermKey.THIRD, shares[FeeTermKey.THIRD]),
    )
    return recompute_record(record, today)


def fee_to_backend(record: FeeRecord, admin_id: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "student_id": record.student_id,
        "student_name": record.student_name,
        "class": record.class_name,
        "section": record.section,
        "amount": record.amount,
    }
    for key in TERM_KEYS:
        term = record.term(key)
        payload[f"{key.value}_term"] = {
            "amount_due": term.amount_due,
            "status": term.status.value,
            "due_date": term.due_date.isoformat() if term.due_date else None,
            "payment_method": term.payment_method or "",
            "payment_date": term.payment_date.isoformat() if term.payment_date else None,
        }
    if admin_id is not None:
        payload["admin_id"] = admin_id
    return payload


def _records_from_backend(data: Any) -> List[FeeRecord]:
    today = date.today()
    records = []
    for item in unwrap_list(data, "fees"):
        try:
            records.append(fee_from_backend(item, today))
        except ValueError as e:
            logger.warning(
                "Skipping malformed fee record %s: %s", ref_id(item.get("_id") or item.get("id")), e
            )
    return records


# --- Read ---
def filter_fees(
    records: Iterable[FeeRecord],
    class_name: Optional[str] = None,
    section: Optional[str] = None,
    status_filter: Optional[TermStatus] = None,
    search: Optional[str] = None,
) -> List[FeeRecord]:
    needle = (search or "").strip().lower()
    result = []
    for r in records:
        if class_name and r.class_name != class_name:
            continue
        if section and r.section != section:
            continue
        if status_filter and r.status != status_filter:
            continue
        if needle and needle not in r.student_name.lower() and needle not in r.student_id.lower():
            continue
        result.append(r)
    return result


async def list_fees(
    backend: BackendClient,
    class_name: Optional[str] = None,
    section: Optional[str] = None,
    status_filter: Optional[TermStatus] = None,
    search: Optional[str] = None,
) -> List[FeeRecord]:
    data = await backend.get("/api/fees", error_message="Failed to fetch fee records.")
    return filter_fees(_records_from_backend(data), class_name, section, status_filter, search)


async def get_fee(backend: BackendClient, fee_id: str) -> FeeRecord:
    data = unwrap(
        await backend.get(f"/api/fees/{fee_id}", error_message="Failed to fetch fee record"),
        "fee",
    )
    if not isinstance(data, dict):
        raise ServiceError("Fee record not found", status.HTTP_404_NOT_FOUND)
    try:
        return fee_from_backend(data)
    except ValueError as e:
        logger.warning("Malformed fee record %s: %s", fee_id, e)
        raise ServiceError("Fee record is malformed", status.HTTP_502_BAD_GATEWAY)


async def get_student_fees(backend: BackendClient, student_id: str) -> List[FeeRecord]:
    data = await backend.get(
        f"/api/fees/student/{student_id}", error_message="Failed to fetch student fees"
    )
    return _records_from_backend(data)


# --- Submitted payments ---
def _payment_term(value: Any) -> Optional[FeeTermKey]:
    text = str(value or "").strip().lower()
    if text.endswith("_term"):
        text = text[: -len("_term")]
    try:
        return FeeTermKey(text)
    except ValueError:
        return None


def overlay_payments(
    record: FeeRecord, payments: Iterable[PaymentDetail], today: Optional[date] = None
) -> FeeRecord:
    """Reflect submitted payments on their terms.

    A verified payment marks its term paid with the payment's date and method.
    A pending one only flags the term as awaiting verification. Rejected
    payments are ignored.
    """
    payments = list(payments)
    terms: Dict[str, FeeTerm] = {}
    for key in TERM_KEYS:
        term = record.term(key)
        mine = [p for p in payments if _payment_term(p.term) == key]
        verified = next((p for p in mine if p.status == PaymentVerificationStatus.VERIFIED), None)
        if verified is not None:
            term = term.model_copy(
                update={
                    "paid": True,
                    "payment_date": verified.payment_date or term.payment_date,
                    "payment_method": verified.payment_method or term.payment_method,
                    "verification": PaymentVerificationStatus.VERIFIED,
                }
            )
        elif any(p.status == PaymentVerificationStatus.PENDING for p in mine):
            term = term.model_copy(update={"verification": PaymentVerificationStatus.PENDING})
        terms[f"{key.value}_term"] = term
    return recompute_record(record.model_copy(update=terms), today)


async def get_fee_payments(backend: BackendClient, fee_id: str) -> List[PaymentDetail]:
    """Payment details submitted against a fee; none yet when the backend answers 404."""
    try:
        return await payment_service.list_fee_payments(backend, fee_id)
    except UpstreamError as e:
        if e.upstream_status == status.HTTP_404_NOT_FOUND:
            return []
        raise


async def get_children_fees(backend: BackendClient) -> List[ChildFees]:
    """Linked children of the signed-in parent, each with their fee records and submitted payments."""
    parent = await backend.get("/api/parents/me", error_message="Failed to fetch parent data")
    children = (parent or {}).get("linkedStudents") or []

    async def _with_payments(record: FeeRecord) -> FeeRecord:
        if not record.id:
            return record
        try:
            payments = await get_fee_payments(backend, record.id)
        except ServiceError as e:
            logger.warning("Could not load payments for fee %s: %s", record.id, e.message)
            return record
        return overlay_payments(record, payments)

    async def _fees_for(student: Dict[str, Any]) -> ChildFees:
        student_id = ref_id(student)
        try:
            fees = await get_student_fees(backend, student_id)
        except ServiceError as e:
            logger.warning("Could not load fees for child %s: %s", student_id, e.message)
            fees = []
        fees = list(await asyncio.gather(*(_with_payments(f) for f in fees)))
        return ChildFees(student=student, fees=fees)

    return list(await asyncio.gather(*(_fees_for(s) for s in children if isinstance(s, dict))))


# --- Write ---
async def create_fee(backend: BackendClient, session: Session, payload: FeeCreate) -> FeeRecord:
    record = build_new_record(
        student_id=payload.student_id,
        student_name=payload.student_name,
        class_name=payload.class_name,
        section=payload.section,
        amount=payload.amount,
        due_dates={key: getattr(payload.due_dates, f"{key.value}_term") for key in TERM_KEYS},
    )
    created = unwrap(
        await backend.post(
            "/api/fees",
            json=fee_to_backend(record, admin_id=session.profile_id),
            error_message="Failed to add fee record.",
        ),
        "fee",
    )
    logger.info("Created fee record for student %s (amount %s)", record.student_id, record.amount)
    if isinstance(created, dict) and created.get("student_id"):
        return fee_from_backend(created)
    return record


def apply_fee_update(current: FeeRecord, payload: FeeUpdate, today: Optional[date] = None) -> FeeRecord:
    """Apply per-term edits to a stored record. Identity and amount are never changed here."""
    today = today or date.today()
    current = recompute_record(current, today)
    terms: Dict[str, FeeTerm] = {}
    for key in TERM_KEYS:
        field = f"{key.value}_term"
        term = current.term(key)
        edit = getattr(payload, field)
        if edit is not None:
            sent = edit.model_fields_set
            if "due_date" in sent:
                term = term.model_copy(update={"due_date": edit.due_date})
            if edit.paid is not None and edit.paid != term.paid:
                if not edit.paid and is_term_locked(term):
                    raise ServiceError(
                        f"{TERM_LABELS[key]} payment is already recorded and cannot be reverted",
                        status.HTTP_409_CONFLICT,
                    )
                term = toggle_term_paid(term, edit.paid, today)
            if term.paid:
                if edit.payment_date is not None:
                    if edit.payment_date > today:
                        raise ServiceError(
                            f"{TERM_LABELS[key]} payment date cannot be in the future",
                            status.HTTP_400_BAD_REQUEST,
                        )
                    term = term.model_copy(update={"payment_date": edit.payment_date})
                if edit.payment_method is not None:
                    term = term.model_copy(update={"payment_method": edit.payment_method.value})
        terms[field] = term
    return recompute_record(current.model_copy(update=terms), today)


async def update_fee(backend: BackendClient, fee_id: str, payload: FeeUpdate) -> FeeRecord:
    current = await get_fee(backend, fee_id)
    updated = apply_fee_update(current, payload)
    await backend.put(
        f"/api/fees/{fee_id}",
        json=fee_to_backend(updated),
        error_message="Failed to update fee record.",
    )
    logger.info("Updated fee record %s (status %s)", fee_id, updated.status.value)
    # Reconcile against the backend's copy rather than trusting our own edit.
    return await get_fee(backend, fee_id)


async def delete_fee(backend: BackendClient, fee_id: str) -> None:
    await backend.delete(f"/api/fees/{fee_id}", error_message="Failed to delete fee record")
    logger.info("Deleted fee record %s", fee_id)


async def submit_term_payment(
    backend: BackendClient, session: Session, fee_id: str, payload: TermPaymentCreate
) -> Any:
    """Submit a parent or student payment for one term; an admin verifies it later."""
    if payload.payment_date and payload.payment_date > date.today():
        raise ServiceError("Payment date cannot be in the future", status.HTTP_400_BAD_REQUEST)
    record = overlay_payments(await get_fee(backend, fee_id), await get_fee_payments(backend, fee_id))
    term = record.term(payload.term)
    if term.status == TermStatus.PAID:
        raise ServiceError(
            f"{TERM_LABELS[payload.term]} is already paid", status.HTTP_409_CONFLICT
        )
    if term.verification == PaymentVerificationStatus.PENDING:
        raise ServiceError(
            f"{TERM_LABELS[payload.term]} payment is awaiting verification", status.HTTP_409_CONFLICT
        )
    result = await backend.post(
        f"/api/fees/{fee_id}/pay-term",
        json={
            "term": payload.term.value,
            "amount_paid": payload.amount_paid,
            "payment_date": (payload.payment_date or date.today()).isoformat(),
            "payment_method": payload.payment_method,
            "transaction_id": payload.transaction_id,
            "invoice_id": payload.invoice_id,
            "paid_by": session.profile_id,
            "paid_by_name": session.display_name,
            "paid_by_role": session.role.value,
        },
        error_message="Failed to submit payment",
    )
    logger.info("Submitted %s term payment for fee %s", payload.term.value, fee_id)
    return result


def preview_fee(payload: FeePreviewRequest, today: Optional[date] = None) -> FeeRecord:
    record = recompute_record(payload.record, today)
    if payload.toggle is not None:
        key = payload.toggle.term
        if not payload.toggle.paid and is_term_locked(record.term(key)):
            raise ServiceError(
                f"{TERM_LABELS[key]} payment is already recorded and cannot be reverted",
                status.HTTP_409_CONFLICT,
            )
        toggled = toggle_term_paid(record.term(key), payload.toggle.paid, today)
        record = record.model_copy(update={f"{key.value}_term": toggled})
    return recompute_record(record, today)


# --- Stats / export ---
def compute_fee_stats(records: Iterable[FeeRecord]) -> FeeStats:
    records = list(records)
    terms = {key: TermStats() for key in TERM_KEYS}
    counts = {s: 0 for s in TermStatus}
    total_amount = 0
    total_paid = 0
    for record in records:
        total_amount += record.amount
        total_paid += paid_amount(record)
        counts[record.status] += 1
        for key in TERM_KEYS:
            term = record.term(key)
            stats = terms[key]
            stats.total_amount += term.amount_due
            if term.status == TermStatus.PAID:
                stats.paid += 1
                stats.paid_amount += term.amount_due
            elif term.status == TermStatus.OVERDUE:
                stats.overdue += 1
            else:
                stats.pending += 1
    return FeeStats(
        total_records=len(records),
        total_amount=total_amount,
        paid_amount=total_paid,
        pending_amount=total_amount - total_paid,
        paid=counts[TermStatus.PAID],
        pending=counts[TermStatus.PENDING],
        overdue=counts[TermStatus.OVERDUE],
        terms=terms,
    )


EXPORT_HEADERS = (
    ["Student ID", "Student Name", "Class", "Section", "Total Fee", "Paid Fee", "Overall Status"]
    + [
        f"{TERM_LABELS[key]} {column}"
        for key in TERM_KEYS
        for column in ("Amount", "Status", "Payment Date", "Payment Method", "Due Date")
    ]
    + ["Paid Terms", "Most Recent Payment Date", "Most Recent Payment Method"]
)


def export_fees_csv(records: Iterable[FeeRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for record in records:
        row: List[Any] = [
            record.student_id,
            record.student_name,
            record.class_name,
            record.section,
            record.amount,
            paid_amount(record),
            record.status.value,
        ]
        for key in TERM_KEYS:
            term = record.term(key)
            row += [
                term.amount_due,
                term.status.value,
                term.payment_date.isoformat() if term.payment_date else "",
                term.payment_method or "",
                term.due_date.isoformat() if term.due_date else "",
            ]
        latest = latest_payment(record)
        row += [
            ", ".join(paid_term_labels(record)) or "N/A",
            latest[0].isoformat() if latest else "N/A",
            (latest[1] or "N/A") if latest else "N/A",
        ]
        writer.writerow(row)
    return buffer.getvalue()
