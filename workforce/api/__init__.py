"""
API Router

Everything is served under /api. The protected-route middleware classifies
paths against these prefixes, so moving a router means revisiting its lists.
"""

from fastapi import APIRouter

from . import admin, agents, auth, organizations, services, system, users

router = APIRouter()

router.include_router(system.router, tags=["System"])
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(users.router, prefix="/user", tags=["Users"])
router.include_router(organizations.router, prefix="/organization", tags=["Organizations"])
router.include_router(services.router, prefix="/services", tags=["Services"])
router.include_router(agents.router, prefix="/agents", tags=["Agents"])
router.include_router(admin.router, prefix="/admin", tags=["Workbench"])
