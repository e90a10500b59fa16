"""Access enforcement for routes.

Every protected route declares the catalog entry it needs::

    @router.get(
        "/app/{appSlug}",
        dependencies=[Depends(enforce_access(catalog.AppRead))],
    )

The check is a synchronous dependency, so FastAPI runs it, including any
store lookups made by resource getters, in its worker threadpool.
"""

from typing import Iterable, List, Optional

from fastapi import Depends, Request

from kotsadm.api.errors import ForbiddenError, InternalServerError
from kotsadm.core.logging import get_logger, log_event
from kotsadm.models import App, Session
from kotsadm.policy.catalog import AccessPolicy
from kotsadm.rbac.engine import RBACEngine
from kotsadm.rbac.errors import RBACError
from kotsadm.rbac.types import AccessDecision
from kotsadm.repositories import KotsStore, StoreError

logger = get_logger(__name__)


def get_rbac_engine(request: Request) -> RBACEngine:
    """Engine built once at startup and kept on the application state."""
    return request.app.state.rbac_engine


def get_store(request: Request) -> KotsStore:
    return request.app.state.store


def get_optional_session(request: Request) -> Optional[Session]:
    return getattr(request.state, "session", None)


def get_session(session: Optional[Session] = Depends(get_optional_session)) -> Session:
    """Session of the caller; a missing session is forbidden."""
    if session is None:
        raise ForbiddenError()
    return session


def check_access(request: Request, policy: AccessPolicy) -> Optional[AccessDecision]:
    """Authorize the request against ``policy`` or raise.

    Returns None when the session predates RBAC and is not checked.
    """
    session = get_optional_session(request)
    if session is None:
        raise ForbiddenError()

    # sessions issued before RBAC existed carry no roles
    if not session.has_rbac:
        return None

    request_id = getattr(request.state, "request_id", None)
    request_vars = {key: str(value) for key, value in request.path_params.items()}

    try:
        action, resource = policy.execute(request_vars, get_store(request))
        decision = get_rbac_engine(request).check(session.roles, action, resource)
    except (RBACError, StoreError) as e:
        log_event(
            logger,
            "error",
            "rbac_check_failed",
            error=str(e),
            error_type=type(e).__name__,
            policy_action=policy.action,
            policy_resource=policy.resource,
            request_id=request_id,
            session_id=session.id,
        )
        raise InternalServerError()

    if decision.denied:
        log_event(
            logger,
            "info",
            "rbac_access_denied",
            action=action,
            resource=resource,
            reason=decision.reason,
            request_id=request_id,
            session_id=session.id,
        )
        raise ForbiddenError(f"access denied to {resource}")

    return decision


def enforce_access(policy: AccessPolicy):
    """Build a route dependency that enforces ``policy``."""

    def dependency(request: Request) -> Optional[AccessDecision]:
        return check_access(request, policy)

    dependency.__name__ = f"enforce_{policy.action}_{policy.resource}"
    return dependency


class RBACContext:
    """Context object providing RBAC operations for endpoints."""

    def __init__(self, session: Session, rbac_engine: RBACEngine):
        self.session = session
        self.rbac = rbac_engine

    def can(self, action: str, resource: str) -> bool:
        """Manual check for handlers that filter results."""
        if not self.session.has_rbac:
            return True
        return self.rbac.authorize(self.session.roles, action, resource)

    def filter_apps(self, apps: Iterable[App], action: str = "read") -> List[App]:
        """Keep the apps the session may act on."""
        return [app for app in apps if self.can(action, f"app.{app.slug}.")]


def get_rbac_context(
    session: Session = Depends(get_session),
    rbac_engine: RBACEngine = Depends(get_rbac_engine),
) -> RBACContext:
    """
    FastAPI dependency to get RBAC context for the current session.

    Usage:
        @router.get("/apps")
        def list_apps(rbac: RBACContext = Depends(get_rbac_context)):
            return rbac.filter_apps(store.list_apps())
    """
    return RBACContext(session, rbac_engine)
