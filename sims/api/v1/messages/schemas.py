from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from sims.core.validators import require_text


class MessageTab(str, Enum):
    INBOX = "inbox"
    SENT = "sent"
    DRAFTS = "drafts"
    STARRED = "starred"
    TRASH = "trash"


class Message(BaseModel):
    id: str
    sender: str
    sender_id: Optional[str] = None
    sender_role: Optional[str] = None
    recipients: List[str] = Field(default_factory=list)
    subject: str = "(No Subject)"
    content: str = ""
    status: Optional[str] = None
    read: bool = False
    starred: bool = False
    created_at: Optional[datetime] = None


class MessageCreate(BaseModel):
    """A message to explicit recipients or to a whole group; drafts skip the recipient check."""

    recipients: List[str] = Field(default_factory=list)
    group: Optional[str] = None
    subject: str = Field("", max_length=200)
    content: str
    draft: bool = False

    @field_validator("content")
    @classmethod
    def content_required(cls, value: str) -> str:
        return require_text(value, "Message content")

    @model_validator(mode="after")
    def check_recipients(self) -> "MessageCreate":
        if not self.draft and not self.group and not self.recipients:
            raise ValueError("At least one recipient is required")
        return self
