"""Application routes."""

from typing import List

from fastapi import APIRouter, Depends

from kotsadm.api.dependencies.rbac import (RBACContext, enforce_access,
                                           get_rbac_context, get_store)
from kotsadm.api.errors import InternalServerError, NotFoundAPIError
from kotsadm.core.logging import get_logger
from kotsadm.models import App
from kotsadm.policy import catalog
from kotsadm.repositories import KotsStore, NotFoundError, StoreError

logger = get_logger(__name__)
router = APIRouter()


@router.get(
    "/apps",
    response_model=List[App],
    summary="List Apps",
    description="List installed apps the session may read",
    dependencies=[Depends(enforce_access(catalog.AppList))],
)
def list_apps(
    rbac: RBACContext = Depends(get_rbac_context),
    store: KotsStore = Depends(get_store),
) -> List[App]:
    """List apps, skipping those the session cannot read."""
    try:
        apps = store.list_apps()
    except StoreError as e:
        logger.error(f"Failed to list apps: {e}")
        raise InternalServerError()

    visible = rbac.filter_apps(apps)

    if len(visible) < len(apps):
        logger.debug(f"Filtered {len(apps) - len(visible)} apps for session")

    return visible


@router.get(
    "/app/{appSlug}",
    response_model=App,
    summary="Get App",
    dependencies=[Depends(enforce_access(catalog.AppRead))],
)
def get_app(appSlug: str, store: KotsStore = Depends(get_store)) -> App:
    """Get a single app by slug."""
    try:
        return store.get_app(appSlug)
    except NotFoundError:
        raise NotFoundAPIError(f"app {appSlug} not found")
    except StoreError as e:
        logger.error(f"Failed to get app {appSlug}: {e}")
        raise InternalServerError()
