from typing import Any, Optional

from pydantic import BaseModel


class ActionResult(BaseModel):
    """Outcome of a mutation. The UI decides how to present it (toast, modal, inline)."""

    success: bool = True
    message: str
    data: Optional[Any] = None
