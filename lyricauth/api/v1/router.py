"""API v1 router aggregator.

All v1 endpoint routers are included here under the /api/v1 prefix.
"""

from fastapi import APIRouter

from lyricauth.api.v1 import auth

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
