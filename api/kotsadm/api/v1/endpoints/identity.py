"""Identity service routes."""

from typing import List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from kotsadm.api.dependencies.rbac import enforce_access
from kotsadm.policy import catalog
from kotsadm.rbac.types import role_summaries

router = APIRouter()


class IdentityRole(BaseModel):
    """Role as shown to operators configuring the identity service."""

    id: str = Field(..., description="Role ID")
    name: str = Field("", description="Role name")
    description: str = Field("", description="Role description")


@router.get(
    "/identity/roles",
    response_model=List[IdentityRole],
    summary="List Roles",
    description="Roles available for identity service group mappings",
    dependencies=[Depends(enforce_access(catalog.IdentityServiceRead))],
)
def list_roles(request: Request) -> List[IdentityRole]:
    registry = request.app.state.rbac_engine.registry
    return [IdentityRole(**role) for role in role_summaries(registry.list_roles())]
