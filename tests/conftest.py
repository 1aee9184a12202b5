"""
API Boilerplate - Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:     Mock AsyncSession (no real DB needed)
    ├── log_service:         In-memory audit writer collecting AuditRecords
    ├── dev_settings:        Settings with environment=development
    ├── prod_settings:       Settings with environment=production
    ├── client:              HTTPX AsyncClient against the test app (development)
    └── production_client:   Same app built with production settings
"""

import os
import tempfile

# Override settings for testing BEFORE any boilerplate imports
os.environ["SQLITE_PATH"] = os.path.join(
    tempfile.mkdtemp(prefix="boilerplate_test_"), "test.db"
)
os.environ["USE_POSTGRES"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["API_LOG_RETRY_MIN_WAIT"] = "0"
os.environ["API_LOG_RETRY_MAX_WAIT"] = "0"

from typing import List  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI, Request  # noqa: E402
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from starlette.types import ASGIApp, Receive, Scope, Send  # noqa: E402

from boilerplate.config import Settings  # noqa: E402
from boilerplate.exceptions import ApiException, UnauthorizedAccessError, ValidationError  # noqa: E402
from boilerplate.middleware.api_response import APIResponseRequestLoggingMiddleware  # noqa: E402
from boilerplate.schemas.audit import AuditRecord  # noqa: E402
from boilerplate.schemas.envelope import APIResponse  # noqa: E402

SUBJECT_HEADER = "x-test-subject"


class RecordingLogService:
    """Audit writer that keeps records in memory."""

    def __init__(self):
        self.records: List[AuditRecord] = []

    async def log(self, record: AuditRecord) -> None:
        self.records.append(record)


class FailingLogService:
    """Audit writer whose store is always down."""

    def __init__(self):
        self.calls = 0

    async def log(self, record: AuditRecord) -> None:
        self.calls += 1
        raise RuntimeError("audit store unavailable")


class FakeUser:
    def __init__(self, subject: str):
        self.is_authenticated = True
        self.claims = {"sub": subject}


class FakeAuthMiddleware:
    """Stands in for the identity subsystem: authenticates via a test header."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = dict(scope.get("headers", []))
            subject = headers.get(SUBJECT_HEADER.encode("latin-1"))
            if subject:
                scope["user"] = FakeUser(subject.decode("latin-1"))
        await self.app(scope, receive, send)


def build_test_app(config: Settings, log_service) -> FastAPI:
    """FastAPI app with one route per envelope/audit scenario."""
    app = FastAPI()
    app.add_middleware(APIResponseRequestLoggingMiddleware, api_log_service=log_service, config=config)
    app.add_middleware(FakeAuthMiddleware)

    @app.get("/api/todo")
    async def get_todo():
        return {"id": 1, "title": "Write tests", "isCompleted": False}

    @app.get("/api/todos")
    async def list_todos():
        return [{"id": 1}, {"id": 2}]

    @app.get("/api/number")
    async def number():
        return 42

    @app.get("/api/text")
    async def text():
        return PlainTextResponse("definitely not json")

    @app.get("/api/envelope")
    async def envelope():
        return APIResponse(status_code=201, message="Created", result={"id": 7})

    @app.get("/api/message-object")
    async def message_object():
        return {"message": "hi", "id": 3}

    @app.get("/api/empty-message-object")
    async def empty_message_object():
        return {"message": "", "count": 2}

    @app.post("/api/echo")
    async def echo(request: Request):
        body = await request.body()
        return {"length": len(body)}

    @app.get("/api/status/{code}")
    async def status(code: int):
        return Response(status_code=code)

    @app.get("/api/created")
    async def created():
        return JSONResponse({"id": 9}, status_code=201)

    @app.get("/api/fault/domain")
    async def domain_fault():
        raise ApiException(
            "not found",
            status_code=404,
            errors={"title": ["required"]},
            reference_error_code="X1",
            reference_document_link="https://docs.example.com/errors/X1",
        )

    @app.post("/api/fault/validation")
    async def validation_fault():
        raise ValidationError(errors={"toAddress": "Not a valid email", "toName": ["required"]})

    @app.get("/api/fault/unauthorized")
    async def unauthorized_fault():
        raise UnauthorizedAccessError("user 42 may not read this")

    @app.get("/api/fault/crash")
    async def crash():
        raise RuntimeError("boom")

    @app.get("/api/fault/chained")
    async def chained():
        try:
            raise ValueError("root cause")
        except ValueError as e:
            raise RuntimeError("wrapper") from e

    @app.get("/api/swagger/index.html")
    async def swagger_ui():
        return HTMLResponse("<html>docs</html>")

    @app.get("/api/authorize/login")
    async def login():
        return {"token": "secret"}

    @app.get("/api/UserProfile/Get")
    async def user_profile():
        return {"email": "someone@example.com"}

    @app.get("/outside")
    async def outside():
        return {"plain": True}

    @app.get("/apix")
    async def apix():
        return {"plain": True}

    return app


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.commit.side_effect = OperationalError(...)
    """
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_session_factory(mock_db_session):
    """Callable returning an async context manager that yields mock_db_session."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=mock_db_session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


@pytest.fixture
def log_service():
    return RecordingLogService()


@pytest.fixture
def dev_settings():
    return Settings(environment="development")


@pytest.fixture
def prod_settings():
    return Settings(environment="production")


@pytest_asyncio.fixture
async def client(dev_settings, log_service):
    """
    HTTPX AsyncClient against the scenario app (development settings).

    Usage:
        async def test_todo(client, log_service):
            response = await client.get("/api/todo")
            assert response.json()["message"] == "Success"
    """
    transport = ASGITransport(app=build_test_app(dev_settings, log_service))
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def production_client(prod_settings, log_service):
    transport = ASGITransport(app=build_test_app(prod_settings, log_service))
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def failing_log_service():
    return FailingLogService()


@pytest_asyncio.fixture
async def make_client():
    """
    Factory for clients against the scenario app with custom settings.

    Usage:
        c = await make_client(Settings(enable_api_logging=False), log_service)
    """
    clients = []

    async def _make(config: Settings, log_service) -> AsyncClient:
        transport = ASGITransport(app=build_test_app(config, log_service))
        c = AsyncClient(transport=transport, base_url="http://test")
        clients.append(c)
        return c

    yield _make

    for c in clients:
        await c.aclose()
