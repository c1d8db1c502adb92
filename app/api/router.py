"""
Kindred — Main API Router

Aggregates all sub-routers under a single prefix so that ``app.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from app.api import mindfulness, peer_support, profile

router = APIRouter()

router.include_router(profile.router, prefix="/profile", tags=["Profile"])
router.include_router(peer_support.router, prefix="/peer-support", tags=["Peer Support"])
router.include_router(mindfulness.router, prefix="/mindfulness", tags=["Mindfulness"])
