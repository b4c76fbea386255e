"""HTTP client for the SIMS REST backend, the source of truth for all records."""

import logging
from typing import Any, AsyncGenerator, Dict, Optional

import httpx
from fastapi import Depends, status

from sims.auth.dependencies import get_current_session
from sims.auth.schemas import Session
from sims.core.config import settings
from sims.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

# Upstream client errors the gateway passes through unchanged; anything else is a 502.
_PASSTHROUGH_STATUSES = {
    status.HTTP_400_BAD_REQUEST,
    status.HTTP_401_UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN,
    status.HTTP_404_NOT_FOUND,
    status.HTTP_409_CONFLICT,
    status.HTTP_422_UNPROCESSABLE_ENTITY,
}


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.api_timeout_seconds,
    ) as client:
        yield client


def _extract_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str) and message.strip():
            return message
    return None


class BackendClient:
    """Thin wrapper over httpx that carries the session's upstream bearer token."""

    def __init__(self, http: httpx.AsyncClient, token: Optional[str] = None) -> None:
        self.http = http
        self.token = token

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        error_message: str = "Request to backend failed",
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}
        try:
            response = await self.http.request(
                method, path, params=params or None, json=json, data=data, headers=self._headers()
            )
        except httpx.RequestError as e:
            logger.warning("Backend %s %s unreachable: %s", method, path, e)
            raise UpstreamError("Backend unavailable") from e

        if response.is_error:
            message = _extract_message(response) or error_message
            logger.warning(
                "Backend %s %s failed with %s: %s", method, path, response.status_code, message
            )
            status_code = (
                response.status_code
                if response.status_code in _PASSTHROUGH_STATUSES
                else status.HTTP_502_BAD_GATEWAY
            )
            raise UpstreamError(message, status_code=status_code, upstream_status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)


async def get_backend(
    http: httpx.AsyncClient = Depends(get_http_client),
    session: Session = Depends(get_current_session),
) -> BackendClient:
    return BackendClient(http, session.token)


async def get_anonymous_backend(
    http: httpx.AsyncClient = Depends(get_http_client),
) -> BackendClient:
    """Backend client for calls made before sign-in (login, password reset)."""
    return BackendClient(http)
