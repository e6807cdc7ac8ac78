"""Tee sheet route handlers: groups, drag-and-drop moves, removals."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from golf_league.api.auth_dependencies import require_admin, require_user
from golf_league.api.routes import http_error_for
from golf_league.database.db import get_db_session
from golf_league.models.schemas import (
    AssignmentResponse,
    CreateGroupsRequest,
    GroupResponse,
    MovePlayerRequest,
    TeeSheetResponse,
    UnassignedPlayer,
)
from golf_league.services import tee_sheet_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/events/{event_id}/tee-sheet", response_model=TeeSheetResponse)
async def get_tee_sheet(
    event_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Groups with their slots plus the unassigned players."""
    try:
        return await tee_sheet_service.get_tee_sheet(session, event_id)
    except ValueError as e:
        raise http_error_for(e)


@router.get("/api/events/{event_id}/unassigned", response_model=List[UnassignedPlayer])
async def get_unassigned_players(
    event_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Playing players without a tee-sheet slot."""
    return await tee_sheet_service.get_unassigned_players(session, event_id)


@router.post("/api/events/{event_id}/groups", response_model=List[GroupResponse])
async def create_groups(
    event_id: int,
    payload: CreateGroupsRequest,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Append empty groups to the tee sheet (admin only)."""
    try:
        return await tee_sheet_service.create_groups(session, event_id, payload.count)
    except ValueError as e:
        raise http_error_for(e)


@router.post("/api/tee-sheet/move", response_model=AssignmentResponse)
async def move_player(
    payload: MovePlayerRequest,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Place a player in a slot, replacing their previous slot in the event.

    404 unknown group, 423 locked event, 409 slot taken, 400 bad position
    or player not in the event.
    """
    try:
        if payload.slot_id is not None:
            group_id, position = tee_sheet_service.parse_slot_id(payload.slot_id)
        else:
            group_id, position = payload.target_group_id, payload.target_position
        return await tee_sheet_service.move_player(session, payload.player_id, group_id, position)
    except ValueError as e:
        raise http_error_for(e)
    except Exception as e:
        logger.error(f"Error moving player {payload.player_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to move player")


@router.delete("/api/events/{event_id}/assignments/{player_id}")
async def remove_player(
    event_id: int,
    player_id: int,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a player from their group. Succeeds even if they had no slot."""
    try:
        removed = await tee_sheet_service.remove_player(session, event_id, player_id)
        return {"status": "success", "removed": removed}
    except ValueError as e:
        raise http_error_for(e)
