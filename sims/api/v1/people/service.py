import logging
from datetime import date
from typing import Any, Dict, List

from fastapi import status

from sims.auth.schemas import Session
from sims.clients.backend import BackendClient
from sims.clients.payloads import unwrap, unwrap_list
from sims.core.exceptions import ServiceError

from .schemas import AdminCreate, ParentCreate, renewal_date

logger = logging.getLogger(__name__)

# Directory listings: resource name -> (backend path, wrapper key).
DIRECTORIES = {
    "students": ("/api/students", "students"),
    "parents": ("/api/parents", "parents"),
    "teachers": ("/api/teachers", "teachers"),
    "classes": ("/api/classes", "classes"),
    "admins": ("/api/admins/", "admins"),
}


def _without_secrets(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in doc.items() if k not in ("password", "confirmPassword")}


async def list_directory(backend: BackendClient, resource: str) -> List[Dict[str, Any]]:
    path, key = DIRECTORIES[resource]
    data = await backend.get(path, error_message=f"Failed to fetch {resource}.")
    return [_without_secrets(item) for item in unwrap_list(data, key)]


async def create_parent(backend: BackendClient, session: Session, payload: ParentCreate) -> Dict[str, Any]:
    body = {
        "user_id": payload.user_id,
        "password": payload.password,
        "full_name": payload.full_name,
        "email": payload.email,
        "phone": payload.phone,
        "address": payload.address,
        "admin_id": session.profile_id,
    }
    created = unwrap(
        await backend.post("/api/parents", json=body, error_message="Failed to add parent."),
        "parent",
    )
    logger.info("Parent %s created", payload.user_id)
    return _without_secrets(created) if isinstance(created, dict) else {}


async def create_admin(backend: BackendClient, payload: AdminCreate) -> Dict[str, Any]:
    existing = await list_directory(backend, "admins")
    for field, value, label in (
        ("userId", payload.user_id, "User ID"),
        ("email", payload.email, "Email ID"),
        ("contactNumber", payload.contact_number, "Contact number"),
    ):
        if any(str(a.get(field) or "").lower() == value.lower() for a in existing):
            raise ServiceError(f"{label} already exists!", status.HTTP_409_CONFLICT)

    today = date.today()
    body = {
        "schoolName": payload.school_name,
        "userId": payload.user_id,
        "email": payload.email,
        "contactNumber": payload.contact_number,
        "password": payload.password,
        "planType": payload.plan_type.value,
        "createdAt": today.isoformat(),
        "renewalDate": renewal_date(payload.plan_type, today).isoformat(),
    }
    created = await backend.post("/api/admins/", json=body, error_message="Failed to add admin.")
    logger.info("Admin %s created on %s plan", payload.user_id, payload.plan_type.value)
    return _without_secrets(created) if isinstance(created, dict) else {}
