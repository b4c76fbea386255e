import json
import os
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Tuple

# Settings are read at import time.
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ.setdefault("SUPERADMIN_USERNAME", "root")
os.environ.setdefault("SUPERADMIN_PASSWORD", "root-pass")

import httpx
import pytest
from httpx import AsyncClient

from sims.auth.schemas import Session
from sims.auth.security import create_session_token
from sims.clients.backend import get_http_client
from sims.core.enums import UserRole
from sims.main import app


class FakeBackend:
    """Route table standing in for the SIMS REST backend."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, body: Any = None, status_code: int = 200) -> None:
        self.routes[(method.upper(), path)] = (status_code, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        status_code, body = route
        if body is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=body)

    def sent(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @staticmethod
    def json_body(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
async def client(backend: FakeBackend) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, with the backend mocked out."""

    async def override_get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
        async with httpx.AsyncClient(
            base_url="http://backend.test",
            transport=httpx.MockTransport(backend.handler),
        ) as http:
            yield http

    app.dependency_overrides[get_http_client] = override_get_http_client
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers() -> Callable[..., Dict[str, str]]:
    """Bearer headers for a signed session with the given role."""

    def _make(
        role: UserRole = UserRole.ADMIN,
        profile: Optional[Dict[str, Any]] = None,
        token: Optional[str] = "upstream-token",
    ) -> Dict[str, str]:
        session = Session(
            token=token,
            role=role,
            profile=profile if profile is not None else {"_id": f"{role.value}-1", "full_name": "Test User"},
        )
        return {"Authorization": f"Bearer {create_session_token(session)}"}

    return _make
