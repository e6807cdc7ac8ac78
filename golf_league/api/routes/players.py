"""Roster route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from golf_league.api.auth_dependencies import require_admin, require_user
from golf_league.database.db import get_db_session
from golf_league.models.schemas import PlayerCreate, PlayerResponse, PlayerUpdate
from golf_league.services import data_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/players", response_model=List[PlayerResponse])
async def list_players(
    active_only: bool = False,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List roster players."""
    try:
        return await data_service.list_players(session, active_only=active_only)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error listing players: {str(e)}")


@router.post("/api/players", response_model=PlayerResponse)
async def create_player(
    payload: PlayerCreate,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Add a player to the roster (admin only)."""
    try:
        return await data_service.create_player(
            session=session,
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            handicap=payload.handicap,
            notes=payload.notes,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating player: {str(e)}")


@router.get("/api/players/{player_id}", response_model=PlayerResponse)
async def get_player(
    player_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get a player."""
    player = await data_service.get_player(session, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return player


@router.put("/api/players/{player_id}", response_model=PlayerResponse)
async def update_player(
    player_id: int,
    payload: PlayerUpdate,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Edit a player (admin only)."""
    try:
        player = await data_service.update_player(
            session, player_id, payload.model_dump(exclude_unset=True)
        )
        if not player:
            raise HTTPException(status_code=404, detail="Player not found")
        return player
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating player: {str(e)}")


@router.delete("/api/players/{player_id}")
async def deactivate_player(
    player_id: int,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Deactivate a player (admin only). Players are never hard-deleted."""
    try:
        if not await data_service.deactivate_player(session, player_id):
            raise HTTPException(status_code=404, detail="Player not found")
        return {"status": "success", "message": "Player deactivated"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deactivating player: {str(e)}")
