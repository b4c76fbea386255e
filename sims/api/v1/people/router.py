from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from sims.auth.dependencies import get_current_session
from sims.auth.rbac import require_admin, require_roles
from sims.auth.schemas import Session
from sims.clients.backend import BackendClient, get_backend
from sims.core.enums import UserRole
from sims.core.exceptions import ServiceError
from sims.core.schemas import ActionResult

from .schemas import AdminCreate, ParentCreate
from . import service

router = APIRouter(prefix="/api/v1/people", tags=["people"])

require_superadmin = require_roles(UserRole.SUPERADMIN)


async def _list(backend: BackendClient, resource: str) -> List[Dict[str, Any]]:
    try:
        return await service.list_directory(backend, resource)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/students", dependencies=[Depends(get_current_session)])
async def list_students(backend: BackendClient = Depends(get_backend)) -> List[Dict[str, Any]]:
    return await _list(backend, "students")


@router.get("/parents", dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER))])
async def list_parents(backend: BackendClient = Depends(get_backend)) -> List[Dict[str, Any]]:
    return await _list(backend, "parents")


@router.get("/teachers", dependencies=[Depends(get_current_session)])
async def list_teachers(backend: BackendClient = Depends(get_backend)) -> List[Dict[str, Any]]:
    return await _list(backend, "teachers")


@router.get("/classes", dependencies=[Depends(get_current_session)])
async def list_classes(backend: BackendClient = Depends(get_backend)) -> List[Dict[str, Any]]:
    return await _list(backend, "classes")


@router.get("/admins", dependencies=[Depends(require_superadmin)])
async def list_admins(backend: BackendClient = Depends(get_backend)) -> List[Dict[str, Any]]:
    return await _list(backend, "admins")


@router.post(
    "/parents",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
)
async def create_parent(
    payload: ParentCreate,
    backend: BackendClient = Depends(get_backend),
    session: Session = Depends(require_admin),
) -> ActionResult:
    try:
        parent = await service.create_parent(backend, session, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Parent added successfully!", data=parent)


@router.post(
    "/admins",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_superadmin)],
)
async def create_admin(
    payload: AdminCreate,
    backend: BackendClient = Depends(get_backend),
) -> ActionResult:
    try:
        admin = await service.create_admin(backend, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ActionResult(message="Admin added successfully!", data=admin)
