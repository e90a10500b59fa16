"""Store lookups for apps, support bundles and sessions.

Key layout::

    app:<id>                     JSON App
    app:slug:<slug>              app id
    apps:all                     set of app ids
    supportbundle:<id>           JSON SupportBundle
    supportbundle:slug:<slug>    support bundle id
    session:<id>                 JSON Session
"""

from typing import List, Optional, Protocol

from pydantic import ValidationError

from kotsadm.core.logging import get_logger
from kotsadm.models import App, Session, SupportBundle
from kotsadm.repositories.redis_base import (NotFoundError, RedisRepository,
                                             StoreError)

logger = get_logger(__name__)


class Store(Protocol):
    """Lookups the authorization layer depends on."""

    def get_app(self, id_or_slug: str) -> App: ...

    def get_support_bundle(self, id_or_slug: str) -> SupportBundle: ...


class KotsStore(RedisRepository):
    """Redis-backed store for admin console records."""

    def _get_by_id_or_slug(self, kind: str, id_or_slug: str) -> Optional[dict]:
        data = self.get_json(f"{kind}:{id_or_slug}")
        if data is not None:
            return data

        record_id = self.get_string(f"{kind}:slug:{id_or_slug}")
        if record_id:
            return self.get_json(f"{kind}:{record_id}")

        return None

    def get_app(self, id_or_slug: str) -> App:
        """Get an app by ID or slug."""
        data = self._get_by_id_or_slug("app", id_or_slug)
        if data is None:
            raise NotFoundError(f"app {id_or_slug} not found")

        try:
            return App.model_validate(data)
        except ValidationError as e:
            raise StoreError(f"invalid app record {id_or_slug}") from e

    def get_support_bundle(self, id_or_slug: str) -> SupportBundle:
        """Get a support bundle by ID or slug."""
        data = self._get_by_id_or_slug("supportbundle", id_or_slug)
        if data is None:
            raise NotFoundError(f"support bundle {id_or_slug} not found")

        try:
            return SupportBundle.model_validate(data)
        except ValidationError as e:
            raise StoreError(f"invalid support bundle record {id_or_slug}") from e

    def list_apps(self) -> List[App]:
        """All installed apps, ordered by slug."""
        app_ids = self.get_members("apps:all")
        records = self.batch_get_json([f"app:{app_id}" for app_id in app_ids])

        apps = []
        for key, data in records.items():
            if data is None:
                logger.warning(f"App index references missing record {key}")
                continue
            try:
                apps.append(App.model_validate(data))
            except ValidationError as e:
                raise StoreError(f"invalid app record {key}") from e

        return sorted(apps, key=lambda a: a.slug)

    def get_session(self, session_id: str) -> Optional[Session]:
        """Get a session by ID. Returns None if unknown."""
        data = self.get_json(f"session:{session_id}")
        if data is None:
            return None

        try:
            return Session.model_validate(data)
        except ValidationError as e:
            raise StoreError(f"invalid session record {session_id}") from e
