"""
API v1 Router

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from teacher_portal.api.v1.endpoints import auth, navigation

router = APIRouter()

# Include authentication routes
router.include_router(auth.router)

# Include navigation routes
router.include_router(navigation.router)
