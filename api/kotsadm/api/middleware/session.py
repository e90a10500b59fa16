"""Session middleware: attaches the caller's session to the request."""

import uuid
from typing import Callable, Optional

from fastapi import Request, Response, status
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from kotsadm.api.errors import error_response
from kotsadm.config.settings import get_settings
from kotsadm.core.logging import get_logger
from kotsadm.models import Session
from kotsadm.repositories import StoreError

logger = get_logger(__name__)


def session_id_from_header(value: Optional[str]) -> Optional[str]:
    """Accept ``Bearer <id>`` or a bare session ID."""
    if not value:
        return None

    value = value.strip()
    scheme, _, token = value.partition(" ")
    if scheme.lower() == "bearer":
        value = token.strip()

    return value or None


class SessionMiddleware(BaseHTTPMiddleware):
    """Resolve the session for every request.

    ``request.state.session`` is set to the session, or None when the request
    carries no valid session. Rejecting anonymous requests is left to the
    route's access check.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()

        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        request.state.session = None

        # Skip session lookup for health check endpoints
        if request.url.path not in [
            settings.health_check_path,
            settings.readiness_check_path,
        ]:
            try:
                request.state.session = await run_in_threadpool(
                    self._load_session, request, settings
                )
            except StoreError as e:
                logger.error(
                    f"Failed to load session: {e}", extra={"request_id": request_id}
                )
                response = error_response(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error"
                )
                response.headers["X-Request-ID"] = request_id
                return response

        response = await call_next(request)

        # Add security headers
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Request-ID"] = request_id

        return response

    def _load_session(self, request: Request, settings) -> Optional[Session]:
        # Runs in the threadpool; the store client is synchronous.
        session_id = session_id_from_header(request.headers.get(settings.session_header))
        if not session_id:
            return None

        session = request.app.state.store.get_session(session_id)
        if session is None:
            logger.debug("Unknown session presented")
            return None

        if session.is_expired():
            logger.debug(f"Session {session.id} expired at {session.expires_at}")
            return None

        return session
