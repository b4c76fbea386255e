from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from sims.auth.dependencies import get_current_session
from sims.auth.rbac import require_admin
from sims.auth.schemas import Session
from sims.clients.backend import BackendClient, get_backend
from sims.core.exceptions import ServiceError
from sims.core.schemas import ActionResult

from .schemas import Announcement, AnnouncementCreate
from . import service

router = APIRouter(prefix="/api/v1/announcements", tags=["announcements"])


@router.get(
    "",
    response_model=List[Announcement],
    dependencies=[Depends(get_current_session)],
)
async def list_announcements(
    backend: BackendClient = Depends(get_backend),
) -> List[Announcement]:
    try:
        return await service.list_announcements(backend)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
)
async def create_announcement(
    payload: AnnouncementCreate,
    backend: BackendClient = Depends(get_backend),
    session: Session = Depends(require_admin),
) -> ActionResult:
    try:
        announcement = await service.create_announcement(backend, session, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Announcement added successfully!", data=announcement.model_dump(mode="json"))


@router.delete(
    "/{announcement_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
async def delete_announcement(
    announcement_id: str,
    backend: BackendClient = Depends(get_backend),
) -> ActionResult:
    try:
        await service.delete_announcement(backend, announcement_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Announcement deleted successfully!")
