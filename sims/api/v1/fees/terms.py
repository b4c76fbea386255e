"""Fee term status derivation.

A fee record is split into three installment terms. A term's status follows
from its paid flag and due date alone; the record's overall status is rolled
up from its three terms. Nothing here touches the backend.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Mapping, Optional, Tuple

from sims.core.enums import FeeTermKey, PaymentMethod, TermStatus

from .schemas import FeeRecord, FeeTerm

TERM_KEYS: Tuple[FeeTermKey, ...] = (FeeTermKey.FIRST, FeeTermKey.SECOND, FeeTermKey.THIRD)
TERM_LABELS = {
    FeeTermKey.FIRST: "1st Term",
    FeeTermKey.SECOND: "2nd Term",
    FeeTermKey.THIRD: "3rd Term",
}
DEFAULT_PAYMENT_METHOD = PaymentMethod.CASH.value


def split_amount(amount: int) -> Tuple[int, int, int]:
    """Split a total into three terms; the rounding remainder goes to the third term."""
    share = int((Decimal(amount) / 3).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return share, share, amount - 2 * share


def derive_term_status(paid: bool, due_date: Optional[date], today: Optional[date] = None) -> TermStatus:
    if paid:
        return TermStatus.PAID
    today = today or date.today()
    if due_date is not None and due_date < today:
        return TermStatus.OVERDUE
    return TermStatus.PENDING


def rollup_status(statuses: Iterable[TermStatus]) -> TermStatus:
    """Paid only when every term is paid; any overdue term makes the record overdue.

    There is no partially-paid state: Paid+Paid+Pending rolls up to Pending.
    """
    statuses = list(statuses)
    if statuses and all(s == TermStatus.PAID for s in statuses):
        return TermStatus.PAID
    if any(s == TermStatus.OVERDUE for s in statuses):
        return TermStatus.OVERDUE
    return TermStatus.PENDING


def is_term_locked(term: FeeTerm) -> bool:
    """A paid term with a recorded payment date can no longer be unpaid."""
    return term.status == TermStatus.PAID and term.payment_date is not None


def toggle_term_paid(term: FeeTerm, paid: bool, today: Optional[date] = None) -> FeeTerm:
    """Mark a term paid or unpaid; paying defaults the date to today and the method to Cash."""
    today = today or date.today()
    if paid:
        term = term.model_copy(
            update={
                "paid": True,
                "payment_date": term.payment_date or today,
                "payment_method": term.payment_method or DEFAULT_PAYMENT_METHOD,
            }
        )
    else:
        term = term.model_copy(update={"paid": False})
    return recompute_term(term, today)


def recompute_term(term: FeeTerm, today: Optional[date] = None) -> FeeTerm:
    update = {"status": derive_term_status(term.paid, term.due_date, today)}
    if not term.paid:
        update.update(payment_date=None, payment_method=None)
    term = term.model_copy(update=update)
    return term.model_copy(update={"locked": is_term_locked(term)})


def recompute_record(record: FeeRecord, today: Optional[date] = None) -> FeeRecord:
    """Re-derive every term's status and the overall status from the raw inputs."""
    today = today or date.today()
    terms = {f"{key.value}_term": recompute_term(record.term(key), today) for key in TERM_KEYS}
    overall = rollup_status(t.status for t in terms.values())
    return record.model_copy(update={**terms, "status": overall})


def build_new_record(
    *,
    student_id: str,
    student_name: str,
    class_name: str,
    section: str,
    amount: int,
    due_dates: Mapping[FeeTermKey, Optional[date]],
    today: Optional[date] = None,
) -> FeeRecord:
    shares = split_amount(amount)
    record = FeeRecord(
        student_id=student_id,
        student_name=student_name,
        class_name=class_name,
        section=section,
        amount=amount,
        first_term=FeeTerm(amount_due=shares[0], due_date=due_dates.get(FeeTermKey.FIRST)),
        second_term=FeeTerm(amount_due=shares[1], due_date=due_dates.get(FeeTermKey.SECOND)),
        third_term=FeeTerm(amount_due=shares[2], due_date=due_dates.get(FeeTermKey.THIRD)),
    )
    return recompute_record(record, today)


# --- Summaries ---
def paid_amount(record: FeeRecord) -> int:
    return sum(record.term(k).amount_due for k in TERM_KEYS if record.term(k).status == TermStatus.PAID)


def paid_term_labels(record: FeeRecord) -> List[str]:
    return [TERM_LABELS[k] for k in TERM_KEYS if record.term(k).status == TermStatus.PAID]


def latest_payment(record: FeeRecord) -> Optional[Tuple[date, Optional[str]]]:
    """Most recent (payment_date, payment_method); ties go to the later term."""
    payments = [
        (term.payment_date, index, term.payment_method)
        for index, term in enumerate(record.term(k) for k in TERM_KEYS)
        if term.status == TermStatus.PAID and term.payment_date is not None
    ]
    if not payments:
        return None
    payment_date, _, method = max(payments, key=lambda p: (p[0], p[1]))
    return payment_date, method
