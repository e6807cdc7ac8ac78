"""Course, event, event-player and score route handlers."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from golf_league.api.auth_dependencies import require_admin, require_user
from golf_league.api.routes import http_error_for
from golf_league.database.db import get_db_session
from golf_league.database.models import EventPlayerStatus
from golf_league.models.schemas import (
    AddEventPlayerRequest,
    CourseCreate,
    CourseResponse,
    EventCreate,
    EventPlayerResponse,
    EventPlayerStatusUpdate,
    EventResponse,
    PlayerResponse,
    ScoreCreate,
    ScoreResponse,
)
from golf_league.services import data_service, stats_service

logger = logging.getLogger(__name__)
router = APIRouter()


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


@router.get("/api/courses", response_model=List[CourseResponse])
async def list_courses(
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List courses."""
    return await data_service.list_courses(session)


@router.post("/api/courses", response_model=CourseResponse)
async def create_course(
    payload: CourseCreate,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a course (admin only)."""
    try:
        return await data_service.create_course(session, payload.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@router.get("/api/events", response_model=List[EventResponse])
async def list_events(
    upcoming_only: bool = False,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List events, most recent first."""
    try:
        return await data_service.list_events(session, upcoming_only=upcoming_only)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error listing events: {str(e)}")


@router.post("/api/events", response_model=EventResponse)
async def create_event(
    payload: EventCreate,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create an event (admin only)."""
    try:
        return await data_service.create_event(
            session=session,
            date=payload.date,
            first_tee_time=payload.first_tee_time,
            max_players=payload.max_players,
            course_id=payload.course_id,
            course_name=payload.course_name,
            slots_per_group=payload.slots_per_group,
            tee_interval_minutes=payload.tee_interval_minutes,
            notes=payload.notes,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating event: {str(e)}")


@router.get("/api/events/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get an event."""
    event = await data_service.get_event(session, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.post("/api/events/{event_id}/lock", response_model=EventResponse)
async def lock_event(
    event_id: int,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Lock an event's tee sheet (admin only)."""
    try:
        return await data_service.set_event_locked(session, event_id, True)
    except ValueError as e:
        raise http_error_for(e)


@router.post("/api/events/{event_id}/unlock", response_model=EventResponse)
async def unlock_event(
    event_id: int,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Unlock an event's tee sheet (admin only)."""
    try:
        return await data_service.set_event_locked(session, event_id, False)
    except ValueError as e:
        raise http_error_for(e)


# ---------------------------------------------------------------------------
# Event players
# ---------------------------------------------------------------------------


@router.get("/api/events/{event_id}/players", response_model=List[EventPlayerResponse])
async def list_event_players(
    event_id: int,
    status: Optional[EventPlayerStatus] = None,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List an event's players, optionally by status."""
    try:
        return await data_service.list_event_players(session, event_id, status=status)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error listing event players: {str(e)}")


@router.post("/api/events/{event_id}/players", response_model=EventPlayerResponse)
async def add_event_player(
    event_id: int,
    payload: AddEventPlayerRequest,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Invite a roster player to an event (admin only)."""
    try:
        return await data_service.add_player_to_event(session, event_id, payload.player_id)
    except ValueError as e:
        raise http_error_for(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding player: {str(e)}")


@router.get("/api/events/{event_id}/available-players", response_model=List[PlayerResponse])
async def list_available_players(
    event_id: int,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Active players not yet in the event."""
    return await data_service.get_available_players(session, event_id)


@router.patch("/api/event-players/{event_player_id}/status", response_model=EventPlayerResponse)
async def update_event_player_status(
    event_player_id: int,
    payload: EventPlayerStatusUpdate,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Change a player's event status (admin only).

    Returns 409 when the event is full (use waitlist instead) or when
    ``expected_status`` no longer matches.
    """
    try:
        event_player = await data_service.update_event_player_status(
            session,
            event_player_id,
            payload.status,
            expected_status=payload.expected_status,
        )
        if not event_player:
            raise HTTPException(status_code=404, detail="Event player not found")
        return event_player
    except HTTPException:
        raise
    except ValueError as e:
        raise http_error_for(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating status: {str(e)}")


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------


@router.post("/api/scores", response_model=ScoreResponse)
async def record_score(
    payload: ScoreCreate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Post a gross score for a player in an event."""
    try:
        return await stats_service.record_score(
            session, payload.event_id, payload.player_id, payload.gross_score
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
