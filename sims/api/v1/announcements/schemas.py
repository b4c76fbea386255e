from datetime import date, timedelta
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from sims.core.enums import AnnouncementTarget
from sims.core.validators import require_text, validate_date_order


class AnnouncementStatus(str, Enum):
    ACTIVE = "active"
    DRAFT = "draft"


class Announcement(BaseModel):
    id: Optional[str] = None
    title: str
    content: str
    target: List[str] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str = AnnouncementStatus.ACTIVE.value


class AnnouncementCreate(BaseModel):
    title: str = Field(..., max_length=200)
    content: str
    target: List[AnnouncementTarget] = Field(..., min_length=1)
    start_date: date = Field(default_factory=date.today)
    end_date: Optional[date] = Field(default_factory=lambda: date.today() + timedelta(days=7))
    status: AnnouncementStatus = AnnouncementStatus.ACTIVE

    @field_validator("title")
    @classmethod
    def title_required(cls, value: str) -> str:
        return require_text(value, "Title")

    @field_validator("content")
    @classmethod
    def content_required(cls, value: str) -> str:
        return require_text(value, "Content")

    @field_validator("target")
    @classmethod
    def unique_targets(cls, value: List[AnnouncementTarget]) -> List[AnnouncementTarget]:
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def check_dates(self) -> "AnnouncementCreate":
        validate_date_order(self.start_date, self.end_date)
        return self
