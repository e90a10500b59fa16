"""Support bundle routes."""

from fastapi import APIRouter, Depends

from kotsadm.api.dependencies.rbac import enforce_access, get_store
from kotsadm.api.errors import InternalServerError, NotFoundAPIError
from kotsadm.core.logging import get_logger
from kotsadm.models import SupportBundle
from kotsadm.policy import catalog
from kotsadm.repositories import KotsStore, NotFoundError, StoreError

logger = get_logger(__name__)
router = APIRouter()


@router.get(
    "/troubleshoot/supportbundle/{bundleSlug}",
    response_model=SupportBundle,
    summary="Get Support Bundle",
    dependencies=[Depends(enforce_access(catalog.AppSupportbundleRead))],
)
def get_support_bundle(
    bundleSlug: str, store: KotsStore = Depends(get_store)
) -> SupportBundle:
    """Get a support bundle by ID or slug. The owning app is resolved for the access check."""
    try:
        return store.get_support_bundle(bundleSlug)
    except NotFoundError:
        raise NotFoundAPIError(f"support bundle {bundleSlug} not found")
    except StoreError as e:
        logger.error(f"Failed to get support bundle {bundleSlug}: {e}")
        raise InternalServerError()
