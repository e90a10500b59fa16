"""Tests for session middleware."""

import threading
import time
from datetime import datetime, timedelta, timezone

import anyio
import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from redis import RedisError

from kotsadm.api.middleware.session import (SessionMiddleware,
                                            session_id_from_header)
from kotsadm.repositories import KotsStore


class BlockingSessionStore(KotsStore):
    """Store whose session lookups block until released."""

    def __init__(self, redis_client, released: threading.Event):
        super().__init__(redis_client)
        self.released = released

    def get_session(self, session_id):
        self.released.wait(timeout=2)
        return super().get_session(session_id)


class BrokenRedis:
    """Redis client whose reads always fail."""

    def get(self, key):
        raise RedisError("connection refused")


@pytest.fixture
def app_with_session_middleware(store):
    """Create FastAPI app with session middleware and the fake store."""
    app = FastAPI()
    app.state.store = store
    app.add_middleware(SessionMiddleware)

    @app.get("/whoami")
    async def whoami(request: Request):
        session = request.state.session
        return {
            "session": session.id if session else None,
            "roles": session.roles if session else [],
            "request_id": request.state.request_id,
        }

    return app


@pytest.mark.unit
class TestSessionIdFromHeader:
    """Test Authorization header parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Bearer abc", "abc"),
            ("bearer abc", "abc"),
            ("abc", "abc"),
            ("  abc  ", "abc"),
            ("Bearer ", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parsing(self, value, expected):
        assert session_id_from_header(value) == expected


@pytest.mark.unit
class TestSessionMiddleware:
    """Test session resolution."""

    def test_no_header_leaves_session_empty(self, app_with_session_middleware):
        client = TestClient(app_with_session_middleware)

        response = client.get("/whoami")

        assert response.status_code == 200
        assert response.json()["session"] is None

    def test_known_session_attached(self, app_with_session_middleware, create_session):
        create_session("sess-1", ["support"])
        client = TestClient(app_with_session_middleware)

        response = client.get("/whoami", headers={"Authorization": "Bearer sess-1"})

        assert response.json()["session"] == "sess-1"
        assert response.json()["roles"] == ["support"]

    def test_unknown_session_ignored(self, app_with_session_middleware):
        client = TestClient(app_with_session_middleware)

        response = client.get("/whoami", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 200
        assert response.json()["session"] is None

    def test_expired_session_ignored(self, app_with_session_middleware, create_session):
        create_session(
            "old",
            ["cluster-admin"],
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
        client = TestClient(app_with_session_middleware)

        response = client.get("/whoami", headers={"Authorization": "old"})

        assert response.json()["session"] is None

    def test_health_skips_lookup(self):
        app = FastAPI()
        app.state.store = None
        app.add_middleware(SessionMiddleware)

        @app.get("/health")
        async def health(request: Request):
            return {"session": request.state.session}

        client = TestClient(app)

        response = client.get("/health", headers={"Authorization": "Bearer sess-1"})

        assert response.status_code == 200
        assert response.json() == {"session": None}

    def test_store_failure_is_server_error(self, app_with_session_middleware):
        app_with_session_middleware.state.store = KotsStore(BrokenRedis())
        client = TestClient(app_with_session_middleware)

        response = client.get("/whoami", headers={"Authorization": "Bearer sess-1"})

        assert response.status_code == 500
        assert response.json() == {"error": "internal server error", "success": False}
        assert "X-Request-ID" in response.headers


@pytest.mark.unit
class TestSessionMiddlewareHeaders:
    """Test request ID and security headers."""

    def test_uses_existing_request_id(self, app_with_session_middleware):
        client = TestClient(app_with_session_middleware)

        response = client.get("/whoami", headers={"X-Request-ID": "test-123"})

        assert response.headers["X-Request-ID"] == "test-123"
        assert response.json()["request_id"] == "test-123"

    def test_generates_request_id_when_missing(self, app_with_session_middleware):
        client = TestClient(app_with_session_middleware)

        response = client.get("/whoami")

        assert len(response.headers["X-Request-ID"]) == 32

    def test_security_headers(self, app_with_session_middleware):
        client = TestClient(app_with_session_middleware)

        response = client.get("/whoami")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


@pytest.mark.unit
class TestSessionMiddlewareConcurrency:
    """Session lookups must not hold up other requests."""

    def test_slow_lookup_does_not_delay_health(
        self, app_with_session_middleware, fake_redis, create_session
    ):
        create_session("sess-1", ["support"])
        released = threading.Event()
        app = app_with_session_middleware
        app.state.store = BlockingSessionStore(fake_redis, released)

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        timings = {}

        async def run():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:

                async def whoami():
                    response = await client.get(
                        "/whoami", headers={"Authorization": "Bearer sess-1"}
                    )
                    timings["whoami"] = response.json()["session"]

                async def health_check():
                    start = time.perf_counter()
                    response = await client.get("/health")
                    timings["health"] = time.perf_counter() - start
                    assert response.status_code == 200
                    released.set()

                async with anyio.create_task_group() as tg:
                    tg.start_soon(whoami)
                    await anyio.sleep(0.05)
                    tg.start_soon(health_check)

        anyio.run(run)

        assert timings["health"] < 1
        assert timings["whoami"] == "sess-1"
