import logging
from typing import Any, Dict, List

from sims.auth.schemas import Session
from sims.clients.backend import BackendClient
from sims.clients.payloads import parse_date, ref_id, unwrap, unwrap_list

from .schemas import Announcement, AnnouncementCreate

logger = logging.getLogger(__name__)


def announcement_from_backend(raw: Dict[str, Any]) -> Announcement:
    target = raw.get("target") or []
    return Announcement(
        id=ref_id(raw.get("_id") or raw.get("id")) or None,
        title=raw.get("title") or "",
        content=raw.get("content") or "",
        target=[target] if isinstance(target, str) else [str(t) for t in target],
        start_date=parse_date(raw.get("startDate") or raw.get("start_date")),
        end_date=parse_date(raw.get("endDate") or raw.get("end_date")),
        status=raw.get("status") or "active",
    )


async def list_announcements(backend: BackendClient) -> List[Announcement]:
    data = await backend.get("/api/announcements/", error_message="Failed to fetch announcements.")
    return [announcement_from_backend(item) for item in unwrap_list(data, "announcements")]


async def create_announcement(
    backend: BackendClient, session: Session, payload: AnnouncementCreate
) -> Announcement:
    body = {
        "title": payload.title,
        "content": payload.content,
        "target": [t.value for t in payload.target],
        "startDate": payload.start_date.isoformat(),
        "endDate": payload.end_date.isoformat() if payload.end_date else None,
        "status": payload.status.value,
        "admin_id": session.profile_id,
    }
    created = unwrap(
        await backend.post("/api/announcements/", json=body, error_message="Failed to add announcement."),
        "announcement",
    )
    logger.info("Announcement %r created for %s", payload.title, ", ".join(body["target"]))
    if isinstance(created, dict) and created.get("title"):
        return announcement_from_backend(created)
    return announcement_from_backend(body)


async def delete_announcement(backend: BackendClient, announcement_id: str) -> None:
    await backend.delete(
        f"/api/announcements/{announcement_id}", error_message="Failed to delete announcement."
    )
    logger.info("Announcement %s deleted", announcement_id)
