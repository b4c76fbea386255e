"""Fees schemas."""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from sims.core.enums import FeeTermKey, PaymentMethod, PaymentVerificationStatus, TermStatus
from sims.core.validators import require_text


# --- Read model ---
class FeeTerm(BaseModel):
    """One installment of a student's fee. status, paid and locked are derived on every read.

    verification comes from the payment details submitted by parents and students.
    """

    amount_due: int = Field(0, ge=0)
    status: TermStatus = TermStatus.PENDING
    paid: bool = False
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    due_date: Optional[date] = None
    locked: bool = False
    verification: Optional[PaymentVerificationStatus] = None


class FeeRecord(BaseModel):
    id: Optional[str] = None
    student_id: str
    student_name: str
    class_name: str = Field(..., alias="class")
    section: str
    amount: int = Field(..., ge=0)
    first_term: FeeTerm = Field(default_factory=FeeTerm)
    second_term: FeeTerm = Field(default_factory=FeeTerm)
    third_term: FeeTerm = Field(default_factory=FeeTerm)
    status: TermStatus = TermStatus.PENDING

    class Config:
        populate_by_name = True

    def term(self, key: FeeTermKey) -> FeeTerm:
        return getattr(self, f"{key.value}_term")


# --- Create / Update ---
class FeeDueDates(BaseModel):
    first_term: Optional[date] = None
    second_term: Optional[date] = None
    third_term: Optional[date] = None


class FeeCreate(BaseModel):
    student_id: str
    student_name: str
    class_name: str = Field(..., alias="class")
    section: str
    amount: int = Field(..., gt=0, description="Total fee in whole currency units")
    due_dates: FeeDueDates = Field(default_factory=FeeDueDates)

    class Config:
        populate_by_name = True

    @field_validator("student_id", "student_name", "class_name", "section")
    @classmethod
    def not_blank(cls, value: str, info) -> str:
        return require_text(value, info.field_name.replace("_", " ").capitalize())


class FeeTermUpdate(BaseModel):
    """Edit of one term. Fields left out keep their current value."""

    paid: Optional[bool] = None
    payment_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    due_date: Optional[date] = None


class FeeUpdate(BaseModel):
    first_term: Optional[FeeTermUpdate] = None
    second_term: Optional[FeeTermUpdate] = None
    third_term: Optional[FeeTermUpdate] = None


class TermToggle(BaseModel):
    term: FeeTermKey
    paid: bool


class FeePreviewRequest(BaseModel):
    """Form state to recompute, optionally after toggling one term's paid flag."""

    record: FeeRecord
    toggle: Optional[TermToggle] = None


# --- Term payment (parent/student) ---
class TermPaymentCreate(BaseModel):
    term: FeeTermKey
    amount_paid: int = Field(..., gt=0)
    payment_method: str = Field(..., min_length=1, max_length=50)
    transaction_id: str = Field(..., min_length=1, max_length=100)
    payment_date: Optional[date] = None
    invoice_id: Optional[str] = Field(None, max_length=100)

    @field_validator("transaction_id")
    @classmethod
    def strip_transaction_id(cls, value: str) -> str:
        return require_text(value, "Transaction ID")


# --- Stats ---
class TermStats(BaseModel):
    total_amount: int = 0
    paid_amount: int = 0
    paid: int = 0
    pending: int = 0
    overdue: int = 0


class FeeStats(BaseModel):
    total_records: int
    total_amount: int
    paid_amount: int
    pending_amount: int
    paid: int
    pending: int
    overdue: int
    terms: Dict[FeeTermKey, TermStats]


class ChildFees(BaseModel):
    student: dict
    fees: List[FeeRecord]
