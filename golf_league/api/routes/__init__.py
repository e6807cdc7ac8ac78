"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter, error mapping) lives here; every sub-router
imports what it needs from this package.
"""

import os

from fastapi import APIRouter, HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

from golf_league.services.exceptions import (
    CapacityExceeded,
    EventLocked,
    EventNotFound,
    GroupNotFound,
    SlotOccupied,
    StaleUpdate,
)

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
if IS_TEST_ENV:
    limiter = Limiter(key_func=get_remote_address)

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()
else:
    limiter = Limiter(key_func=get_remote_address)

# ---------------------------------------------------------------------------
# Domain error -> HTTP status
# ---------------------------------------------------------------------------
DOMAIN_ERROR_STATUS = (
    (EventNotFound, 404),
    (GroupNotFound, 404),
    (EventLocked, 423),
    (CapacityExceeded, 409),
    (SlotOccupied, 409),
    (StaleUpdate, 409),
)


def http_error_for(error: ValueError) -> HTTPException:
    """Map a service-layer ValueError to an HTTPException (400 by default)."""
    for error_cls, status_code in DOMAIN_ERROR_STATUS:
        if isinstance(error, error_cls):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from golf_league.api.routes.players import router as players_router  # noqa: E402
from golf_league.api.routes.events import router as events_router  # noqa: E402
from golf_league.api.routes.tee_sheet import router as tee_sheet_router  # noqa: E402
from golf_league.api.routes.rsvp import router as rsvp_router  # noqa: E402

router = APIRouter()
router.include_router(players_router)
router.include_router(events_router)
router.include_router(tee_sheet_router)
router.include_router(rsvp_router)
