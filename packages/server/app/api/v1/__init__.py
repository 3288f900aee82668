"""
API v1 Router

All org-scoped endpoints are prefixed with /orgs/{orgSlug}.
"""

from fastapi import APIRouter, Request

from . import events, projects, users
from .organizations import router_global as orgs_global_router
from .organizations import router_scoped as orgs_scoped_router

router = APIRouter()

# Organization routes (non-org-scoped: list, create)
router.include_router(orgs_global_router)

# Organization routes (org-scoped: get, update, stats, members)
router.include_router(orgs_scoped_router, prefix="/orgs/{orgSlug}", tags=["Organizations"])

# Include resource routers
router.include_router(projects.router, prefix="/orgs/{orgSlug}/projects", tags=["Projects"])
router.include_router(events.router, prefix="/orgs/{orgSlug}/events", tags=["Events"])
router.include_router(users.router, prefix="/users", tags=["Users"])


@router.get("/", tags=["API"])
async def api_root(request: Request):
    """API root: version and every registered v1 endpoint path."""
    prefix = "/api/v1"
    paths = sorted(
        path[len(prefix):]
        for path in request.app.openapi()["paths"]
        if path.startswith(prefix + "/") and path != prefix + "/"
    )
    return {"api": "v1", "version": "0.1.0", "endpoints": paths}
