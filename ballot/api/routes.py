"""API router aggregating all route modules."""

from fastapi import APIRouter

from ballot.api.events import router as events_router
from ballot.api.phases import router as phases_router
from ballot.api.proposals import router as proposals_router
from ballot.api.session import router as session_router
from ballot.api.voters import router as voters_router

router = APIRouter()

# Include all sub-routers
router.include_router(session_router, tags=["Session"])
router.include_router(phases_router, tags=["Phases"])
router.include_router(voters_router, tags=["Voters"])
router.include_router(proposals_router, tags=["Proposals"])
router.include_router(events_router, tags=["Events"])
