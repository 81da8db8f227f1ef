"""Shared fixtures: a scripted backend behind httpx.MockTransport and an in-memory cache."""

from typing import Any

import httpx
import pytest
import pytest_asyncio

from src.campus_client.cache import CacheMirror, MemoryStore
from src.campus_client.transport import ApiTransport

BASE_URL = "http://campus.test/api"


class ScriptedBackend:
    """Routes (method, path) to canned responses and records every call.

    Paths are relative to the API base URL. Unrouted requests answer 404, the
    way the real backend does for paths a deployment doesn't serve.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[tuple[str, str]] = []
        self.bodies: list[Any] = []

    def on(
        self,
        method: str,
        path: str,
        status: int = 200,
        *,
        json: Any = None,
        text: str | None = None,
        content_type: str | None = None,
    ) -> None:
        self.routes[(method, path)] = (status, json, text, content_type)

    def fail(self, method: str, path: str, exc: type[httpx.RequestError]) -> None:
        self.routes[(method, path)] = exc

    def paths(self, method: str | None = None) -> list[str]:
        return [p for m, p in self.calls if method is None or m == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        self.calls.append((request.method, path))
        self.bodies.append(request.content.decode() or None)

        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        if isinstance(route, type):
            raise route("scripted failure", request=request)

        status, body, text, content_type = route
        if text is not None:
            headers = {"content-type": content_type or "text/plain"}
            return httpx.Response(status, text=text, headers=headers)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest_asyncio.fixture
async def transport(backend: ScriptedBackend):
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(backend.handler))
    api = ApiTransport(BASE_URL, client=client)
    yield api
    await client.aclose()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def cache(store: MemoryStore) -> CacheMirror:
    return CacheMirror(store)
