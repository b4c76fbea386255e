"""Payment details schemas."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from sims.core.enums import PaymentVerificationStatus


class PaymentDetail(BaseModel):
    """A term payment submitted by a parent or student, awaiting or past admin verification."""

    id: Optional[str] = None
    invoice_id: Optional[str] = None
    fee_id: Optional[str] = None
    student_id: str = ""
    student_name: str = ""
    class_name: str = Field("", alias="class")
    section: str = ""
    term: Optional[str] = None
    amount_paid: float = 0
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    status: PaymentVerificationStatus = PaymentVerificationStatus.PENDING

    class Config:
        populate_by_name = True


class PaymentStatusUpdate(BaseModel):
    status: PaymentVerificationStatus
