"""Pytest configuration and shared fixtures for the admin console RBAC tests."""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from fakeredis import FakeStrictRedis
from fastapi.testclient import TestClient

from kotsadm.rbac.engine import EvaluationMode, RBACEngine
from kotsadm.rbac.registry import RBACRegistry, default_registry
from kotsadm.rbac.types import PatternListPolicy, Role, RulePolicy
from kotsadm.repositories import KotsStore

# ============================================================================
# Redis Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def fake_redis_session():
    """Single FakeRedis instance for entire test session."""
    return FakeStrictRedis(decode_responses=True)


@pytest.fixture(autouse=True)
def fake_redis(fake_redis_session):
    """
    Function-scoped fixture that clears session redis before each test.
    This ensures test isolation while using a single redis instance.
    """
    fake_redis_session.flushdb()
    yield fake_redis_session


@pytest.fixture
def store(fake_redis):
    """Store backed by fake Redis."""
    return KotsStore(fake_redis)


# ============================================================================
# Registry Fixtures
# ============================================================================


@pytest.fixture
def app_operator_role():
    """Full access to apps, except the downstream file tree."""
    return Role(
        id="app-operator",
        name="App Operator",
        description="Operate applications",
        policies=(
            PatternListPolicy(
                id="app-operator-apps",
                allowed=("app.my-app.**",),
                denied=("app.*.downstream.filetree.",),
            ),
        ),
    )


@pytest.fixture
def logs_reader_role():
    """Allows reading downstream logs of any app."""
    return Role(
        id="logs-reader",
        name="Logs Reader",
        policies=(
            PatternListPolicy(id="logs-allow", allowed=("app.*.downstream.logs.",)),
        ),
    )


@pytest.fixture
def logs_blocked_role():
    """Denies downstream logs with the same pattern the reader is allowed."""
    return Role(
        id="logs-blocked",
        name="Logs Blocked",
        policies=(
            PatternListPolicy(id="logs-deny", denied=("app.*.downstream.logs.",)),
        ),
    )


@pytest.fixture
def app_lister_role():
    """Lists apps and reads only my-app."""
    return Role(
        id="app-lister",
        name="App Lister",
        policies=(
            RulePolicy(id="lister-list", action="list", resource="app."),
            RulePolicy(id="lister-read", action="read", resource="app.my-app.**"),
        ),
    )


@pytest.fixture
def registry(app_operator_role, logs_reader_role, logs_blocked_role, app_lister_role):
    """Built-in catalog plus the test roles."""
    defaults = default_registry()
    return RBACRegistry(
        policies=defaults.list_policies(),
        roles=defaults.list_roles()
        + [app_operator_role, logs_reader_role, logs_blocked_role, app_lister_role],
        groups=defaults.groups,
    )


@pytest.fixture
def rbac_engine(registry):
    """Provide an RBAC engine in the default specificity mode."""
    return RBACEngine(registry)


@pytest.fixture
def deny_wins_engine(registry):
    """Provide an RBAC engine where any matching deny vetoes."""
    return RBACEngine(registry, mode=EvaluationMode.DENY_WINS)


# ============================================================================
# Store Data Fixtures
# ============================================================================


@pytest.fixture
def sample_apps():
    """Installed apps."""
    return [
        {"id": "app-1", "slug": "my-app", "name": "My App", "isAirgap": False},
        {"id": "app-2", "slug": "other-app", "name": "Other App", "isAirgap": True},
    ]


@pytest.fixture
def sample_bundles():
    """Support bundles collected for the sample apps."""
    return [
        {"id": "sb-1", "slug": "my-app-bundle", "appId": "app-1", "status": "uploaded"},
        {"id": "sb-2", "slug": "other-bundle", "appId": "app-2", "status": "uploaded"},
    ]


@pytest.fixture
def populate_apps(fake_redis):
    """Helper to populate Redis with apps."""

    def _populate(apps: List[Dict[str, Any]]):
        for app in apps:
            fake_redis.set(f"app:{app['id']}", json.dumps(app))
            fake_redis.set(f"app:slug:{app['slug']}", app["id"])
            fake_redis.sadd("apps:all", app["id"])

    return _populate


@pytest.fixture
def populate_bundles(fake_redis):
    """Helper to populate Redis with support bundles."""

    def _populate(bundles: List[Dict[str, Any]]):
        for bundle in bundles:
            fake_redis.set(f"supportbundle:{bundle['id']}", json.dumps(bundle))
            fake_redis.set(f"supportbundle:slug:{bundle['slug']}", bundle["id"])

    return _populate


@pytest.fixture
def create_session(fake_redis):
    """Helper to store a session and return its ID."""

    def _create(
        session_id: str,
        roles: List[str],
        has_rbac: bool = True,
        expires_at: Optional[datetime] = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        expires_at = expires_at or now + timedelta(hours=12)
        fake_redis.set(
            f"session:{session_id}",
            json.dumps(
                {
                    "id": session_id,
                    "roles": roles,
                    "hasRBAC": has_rbac,
                    "issuedAt": now.isoformat(),
                    "expiresAt": expires_at.isoformat(),
                }
            ),
        )
        return session_id

    return _create


@pytest.fixture
def populated_store(store, populate_apps, populate_bundles, sample_apps, sample_bundles):
    """Store holding the sample apps and bundles."""
    populate_apps(sample_apps)
    populate_bundles(sample_bundles)
    return store


# ============================================================================
# API Test Client Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clear_caches():
    """Reset cached settings and Redis clients between tests."""
    from kotsadm.config.settings import get_settings
    from kotsadm.db.redis import get_redis_client, get_redis_pool

    get_settings.cache_clear()
    get_redis_client.cache_clear()
    get_redis_pool.cache_clear()
    yield


@pytest.fixture
def test_client(populated_store, registry):
    """Provide a test client with the fake store and test registry."""
    from kotsadm.main import create_app

    app = create_app(store=populated_store, registry=registry)
    return TestClient(app)


@pytest.fixture
def client_for(test_client, create_session):
    """Build a client authenticated with a fresh session holding ``roles``."""

    def _client(roles: List[str], has_rbac: bool = True) -> TestClient:
        session_id = create_session(f"session-{'-'.join(roles) or 'none'}", roles, has_rbac)
        test_client.headers.update({"Authorization": f"Bearer {session_id}"})
        return test_client

    return _client


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "rbac: RBAC-specific tests")
    config.addinivalue_line("markers", "redis: Redis-dependent tests")
