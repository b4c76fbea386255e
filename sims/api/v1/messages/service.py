import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sims.auth.schemas import Session
from sims.clients.backend import BackendClient
from sims.clients.payloads import ref_id, unwrap_list

from .schemas import Message, MessageCreate, MessageTab

logger = logging.getLogger(__name__)


def _person_label(person: Any) -> str:
    if not isinstance(person, dict):
        return str(person or "Unknown")
    name = person.get("full_name") or person.get("email") or "Unknown"
    user_id = person.get("user_id")
    return f"{name} ({user_id})" if user_id else name


def _timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def message_from_backend(raw: Dict[str, Any]) -> Message:
    sender = raw.get("sender")
    sender_doc = sender if isinstance(sender, dict) else {}
    return Message(
        id=ref_id(raw.get("_id") or raw.get("id")),
        sender=_person_label(sender),
        sender_id=ref_id(sender) or None,
        sender_role=sender_doc.get("role"),
        recipients=[_person_label(r) for r in raw.get("recipients") or []],
        subject=raw.get("subject") or "(No Subject)",
        content=raw.get("content") or raw.get("message") or "",
        status=raw.get("status"),
        read=bool(raw.get("read") or raw.get("isRead")),
        starred=bool(raw.get("starred") or raw.get("isStarred")),
        created_at=_timestamp(raw.get("createdAt")),
    )


async def list_messages(
    backend: BackendClient,
    tab: MessageTab = MessageTab.INBOX,
    search: Optional[str] = None,
    status_filter: Optional[str] = None,
) -> List[Message]:
    data = await backend.get(
        "/api/messages",
        params={"tab": tab.value, "search": search, "status": status_filter},
        error_message="Failed to fetch messages.",
    )
    return [message_from_backend(item) for item in unwrap_list(data, "messages")]


async def send_message(backend: BackendClient, session: Session, payload: MessageCreate) -> None:
    form: Dict[str, Any] = {
        "subject": payload.subject,
        "content": payload.content,
        "status": "draft" if payload.draft else "sent",
        "admin_id": session.profile_id,
    }
    if payload.group:
        form["group"] = payload.group
    if payload.recipients:
        form["recipients[]"] = payload.recipients
    await backend.post("/api/messages", data=form, error_message="Failed to send message.")
    logger.info(
        "Message %s by %s to %d recipient(s)",
        "drafted" if payload.draft else "sent",
        session.profile_id or session.role.value,
        len(payload.recipients),
    )


# Per-message actions: (HTTP method, path suffix, error message).
MESSAGE_ACTIONS = {
    "read": ("PUT", "/read", "Failed to mark message as read."),
    "star": ("PATCH", "/star", "Failed to update star."),
    "trash": ("PATCH", "/delete", "Failed to move message to trash."),
    "restore": ("PATCH", "/undo", "Failed to restore message."),
    "delete": ("DELETE", "", "Failed to delete message."),
}


async def apply_message_action(backend: BackendClient, message_id: str, action: str) -> None:
    method, suffix, error_message = MESSAGE_ACTIONS[action]
    await backend.request(
        method,
        f"/api/messages/{message_id}{suffix}",
        json={} if method != "DELETE" else None,
        error_message=error_message,
    )
