"""API v1 router assembly."""

from fastapi import APIRouter

from kotsadm.api.v1.endpoints import apps, identity, troubleshoot

api_router = APIRouter()

api_router.include_router(apps.router, tags=["apps"])
api_router.include_router(troubleshoot.router, tags=["troubleshoot"])
api_router.include_router(identity.router, tags=["identity"])
