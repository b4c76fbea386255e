from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from sims.auth.dependencies import get_current_session
from sims.auth.schemas import Session
from sims.clients.backend import BackendClient, get_backend
from sims.core.exceptions import ServiceError
from sims.core.schemas import ActionResult

from .schemas import Message, MessageCreate, MessageTab
from . import service

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.get(
    "",
    response_model=List[Message],
    dependencies=[Depends(get_current_session)],
)
async def list_messages(
    tab: MessageTab = Query(MessageTab.INBOX),
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    backend: BackendClient = Depends(get_backend),
) -> List[Message]:
    try:
        return await service.list_messages(backend, tab, search, status_filter)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    payload: MessageCreate,
    backend: BackendClient = Depends(get_backend),
    session: Session = Depends(get_current_session),
) -> ActionResult:
    try:
        await service.send_message(backend, session, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Draft saved" if payload.draft else "Message sent successfully!")


@router.post(
    "/{message_id}/{action}",
    response_model=ActionResult,
    dependencies=[Depends(get_current_session)],
)
async def message_action(
    message_id: str,
    action: str,
    backend: BackendClient = Depends(get_backend),
) -> ActionResult:
    """read, star, trash, restore or delete a single message."""
    if action not in service.MESSAGE_ACTIONS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown message action")
    try:
        await service.apply_message_action(backend, message_id, action)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Message updated")
