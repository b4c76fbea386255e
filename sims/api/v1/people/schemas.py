"""Schemas for the directory of students, parents, teachers, classes and school admins."""

from datetime import date, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from sims.core.validators import require_text, validate_password_pair, validate_phone


class ParentCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)
    full_name: str
    email: EmailStr
    phone: str
    address: str

    @field_validator("full_name")
    @classmethod
    def name_required(cls, value: str) -> str:
        return require_text(value, "Name")

    @field_validator("address")
    @classmethod
    def address_required(cls, value: str) -> str:
        return require_text(value, "Address")

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return validate_phone(value)


class PlanType(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


def renewal_date(plan_type: PlanType, start: Optional[date] = None) -> date:
    """Monthly plans renew after 30 days, yearly plans on the same day next year."""
    start = start or date.today()
    if plan_type == PlanType.MONTHLY:
        return start + timedelta(days=30)
    try:
        return start.replace(year=start.year + 1)
    except ValueError:
        # 29 February
        return start.replace(year=start.year + 1, day=28)


class AdminCreate(BaseModel):
    school_name: str
    user_id: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    contact_number: str
    password: str
    confirm_password: str
    plan_type: PlanType = PlanType.MONTHLY

    @field_validator("school_name")
    @classmethod
    def school_required(cls, value: str) -> str:
        return require_text(value, "School name")

    @field_validator("contact_number")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return validate_phone(value)

    @model_validator(mode="after")
    def check_passwords(self) -> "AdminCreate":
        validate_password_pair(self.password, self.confirm_password)
        return self
