"""Tests for logging middleware."""

import pytest
from fastapi import FastAPI, HTTPException, Request
from fastapi.testclient import TestClient

from kotsadm.api.middleware.logging import LoggingMiddleware
from kotsadm.models import Session


@pytest.fixture
def app_with_logging_middleware():
    """Create FastAPI app with logging middleware."""
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)

    @app.get("/test")
    async def test_endpoint():
        return {"status": "ok"}

    @app.get("/error")
    async def error_endpoint():
        raise HTTPException(status_code=500, detail="Test error")

    @app.get("/exception")
    async def exception_endpoint():
        raise ValueError("Unexpected error")

    @app.get("/with-session")
    async def session_endpoint(request: Request):
        request.state.request_id = "req-42"
        request.state.session = Session(id="sess-42", roles=["support"], hasRBAC=True)
        return {"status": "ok"}

    return app


def messages(caplog, event):
    return [r.message for r in caplog.records if event in r.message]


@pytest.mark.unit
class TestLoggingMiddlewareRequestLogging:
    """Test request logging functionality."""

    def test_logs_request_start_at_debug(self, app_with_logging_middleware, caplog):
        """Should log method and path when request starts."""
        client = TestClient(app_with_logging_middleware)

        with caplog.at_level("DEBUG"):
            response = client.get("/test")

        assert response.status_code == 200

        started = messages(caplog, "request_started")
        assert any("GET" in msg and "/test" in msg for msg in started)

    def test_start_not_logged_at_info(self, app_with_logging_middleware, caplog):
        client = TestClient(app_with_logging_middleware)

        with caplog.at_level("INFO"):
            client.get("/test")

        assert messages(caplog, "request_started") == []

    def test_logs_client_host(self, app_with_logging_middleware, caplog):
        client = TestClient(app_with_logging_middleware)

        with caplog.at_level("DEBUG"):
            client.get("/test")

        # TestClient uses testclient as host
        assert any("testclient" in msg for msg in messages(caplog, "request_started"))


@pytest.mark.unit
class TestLoggingMiddlewareResponseLogging:
    """Test response logging functionality."""

    def test_logs_status_and_duration(self, app_with_logging_middleware, caplog):
        client = TestClient(app_with_logging_middleware)

        with caplog.at_level("INFO"):
            response = client.get("/test")

        assert response.status_code == 200

        completed = messages(caplog, "request_completed")
        assert len(completed) == 1
        assert "200" in completed[0]
        assert "duration_seconds" in completed[0]

    def test_logs_session_and_request_id(self, app_with_logging_middleware, caplog):
        """Should include the session populated further down the stack."""
        client = TestClient(app_with_logging_middleware)

        with caplog.at_level("INFO"):
            client.get("/with-session")

        completed = messages(caplog, "request_completed")
        assert "sess-42" in completed[0]
        assert "req-42" in completed[0]

    def test_http_exceptions_complete_normally(self, app_with_logging_middleware, caplog):
        """HTTPException is handled by FastAPI, so it is a normal response here."""
        client = TestClient(app_with_logging_middleware)

        with caplog.at_level("INFO"):
            response = client.get("/error")

        assert response.status_code == 500
        assert any("500" in msg for msg in messages(caplog, "request_completed"))


@pytest.mark.unit
class TestLoggingMiddlewareErrors:
    """Test logging of unexpected exceptions."""

    def test_logs_unexpected_exceptions(self, app_with_logging_middleware, caplog):
        client = TestClient(app_with_logging_middleware)

        with caplog.at_level("ERROR"):
            with pytest.raises(ValueError):
                client.get("/exception")

        failed = messages(caplog, "request_failed")
        assert len(failed) == 1
        assert "ValueError" in failed[0]


@pytest.mark.unit
class TestLoggingMiddlewareTimingHeader:
    """Test X-Process-Time header functionality."""

    def test_adds_numeric_timing_header(self, app_with_logging_middleware):
        client = TestClient(app_with_logging_middleware)

        response = client.get("/test")

        assert float(response.headers["X-Process-Time"]) >= 0

    def test_timing_header_on_error_responses(self, app_with_logging_middleware):
        client = TestClient(app_with_logging_middleware)

        response = client.get("/error")

        assert response.status_code == 500
        assert "X-Process-Time" in response.headers
