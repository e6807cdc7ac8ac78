"""
Data service layer for roster, event and event-participation operations.
"""

import logging
from datetime import date, time
from typing import Dict, List, Optional, Union

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from golf_league.database.models import (
    Course,
    Event,
    EventPlayer,
    EventPlayerStatus,
    Player,
)
from golf_league.services import capacity_service
from golf_league.services.exceptions import CapacityExceeded, EventNotFound, StaleUpdate
from golf_league.utils.constants import DEFAULT_SLOTS_PER_GROUP, DEFAULT_TEE_INTERVAL_MINUTES
from golf_league.utils.phone_utils import normalize_phone_number

logger = logging.getLogger(__name__)

PLAYER_UPDATABLE_FIELDS = ("name", "email", "phone", "handicap", "notes", "is_active")


# ============================================================================
# Serialization helpers
# ============================================================================


def _player_to_dict(player: Player) -> Dict:
    return {
        "id": player.id,
        "name": player.name,
        "email": player.email,
        "phone": player.phone,
        "handicap": player.handicap,
        "notes": player.notes,
        "is_active": player.is_active,
    }


def event_course_name(event: Event) -> Optional[str]:
    """Course row name when linked, else the free-text course name."""
    if event.course is not None:
        return event.course.name
    return event.course_name


def _event_to_dict(event: Event) -> Dict:
    return {
        "id": event.id,
        "date": event.date.isoformat() if event.date else None,
        "course_id": event.course_id,
        "course_name": event_course_name(event),
        "first_tee_time": event.first_tee_time.strftime("%H:%M") if event.first_tee_time else None,
        "tee_interval_minutes": event.tee_interval_minutes,
        "max_players": event.max_players,
        "slots_per_group": event.slots_per_group,
        "is_locked": event.is_locked,
        "notes": event.notes,
    }


def _event_player_to_dict(event_player: EventPlayer, player: Optional[Player] = None) -> Dict:
    result = {
        "id": event_player.id,
        "event_id": event_player.event_id,
        "player_id": event_player.player_id,
        "status": EventPlayerStatus(event_player.status).value,
        "rsvp_status": event_player.rsvp_status.value if event_player.rsvp_status else None,
        "rsvp_sent_at": event_player.rsvp_sent_at.isoformat() if event_player.rsvp_sent_at else None,
    }
    if player is not None:
        result["player"] = _player_to_dict(player)
    return result


# ============================================================================
# Courses
# ============================================================================


async def create_course(session: AsyncSession, name: str) -> Dict:
    """Create a course."""
    if not name or not name.strip():
        raise ValueError("Course name is required")
    course = Course(name=name.strip())
    session.add(course)
    await session.commit()
    await session.refresh(course)
    return {"id": course.id, "name": course.name}


async def list_courses(session: AsyncSession) -> List[Dict]:
    """List courses by name."""
    result = await session.execute(select(Course).order_by(Course.name.asc()))
    return [{"id": c.id, "name": c.name} for c in result.scalars().all()]


# ============================================================================
# Players
# ============================================================================


async def create_player(
    session: AsyncSession,
    name: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    handicap: Optional[float] = None,
    notes: Optional[str] = None,
) -> Dict:
    """
    Create a roster player.

    Args:
        session: Database session
        name: Display name (required)
        email: Optional email
        phone: Optional phone, stored in E.164 form
        handicap: Optional handicap index
        notes: Optional free-text notes

    Returns:
        Player dictionary

    Raises:
        ValueError: If the name is blank or the phone number is invalid
    """
    if not name or not name.strip():
        raise ValueError("Player name is required")

    player = Player(
        name=name.strip(),
        email=email,
        phone=normalize_phone_number(phone),
        handicap=handicap,
        notes=notes,
        is_active=True,
    )
    session.add(player)
    await session.commit()
    await session.refresh(player)
    return _player_to_dict(player)


async def get_player(session: AsyncSession, player_id: int) -> Optional[Dict]:
    """Get a player by ID."""
    player = await session.get(Player, player_id)
    return _player_to_dict(player) if player else None


async def list_players(session: AsyncSession, active_only: bool = False) -> List[Dict]:
    """List players ordered by name."""
    query = select(Player).order_by(Player.name.asc())
    if active_only:
        query = query.where(Player.is_active == True)  # noqa: E712
    result = await session.execute(query)
    return [_player_to_dict(p) for p in result.scalars().all()]


async def update_player(session: AsyncSession, player_id: int, updates: Dict) -> Optional[Dict]:
    """
    Apply a partial update to a player.

    Unknown keys are ignored. Returns None if the player does not exist.
    """
    player = await session.get(Player, player_id)
    if player is None:
        return None

    for field in PLAYER_UPDATABLE_FIELDS:
        if field not in updates:
            continue
        value = updates[field]
        if field == "name":
            if not value or not str(value).strip():
                raise ValueError("Player name is required")
            value = str(value).strip()
        elif field == "phone":
            value = normalize_phone_number(value)
        setattr(player, field, value)

    await session.commit()
    await session.refresh(player)
    return _player_to_dict(player)


async def deactivate_player(session: AsyncSession, player_id: int) -> bool:
    """Soft-delete a player. Returns False if the player does not exist."""
    result = await session.execute(
        update(Player).where(Player.id == player_id).values(is_active=False)
    )
    await session.commit()
    return result.rowcount > 0


# ============================================================================
# Events
# ============================================================================


async def get_event_row(session: AsyncSession, event_id: int, for_update: bool = False) -> Event:
    """
    Load an Event with its course.

    Args:
        for_update: Lock the row (SELECT ... FOR UPDATE) until the transaction ends

    Raises:
        EventNotFound: If no such event exists
    """
    query = select(Event).options(selectinload(Event.course)).where(Event.id == event_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    event = result.scalar_one_or_none()
    if event is None:
        raise EventNotFound(f"Event {event_id} not found")
    return event


async def create_event(
    session: AsyncSession,
    date: date,
    first_tee_time: time,
    max_players: int,
    course_id: Optional[int] = None,
    course_name: Optional[str] = None,
    slots_per_group: int = DEFAULT_SLOTS_PER_GROUP,
    tee_interval_minutes: int = DEFAULT_TEE_INTERVAL_MINUTES,
    notes: Optional[str] = None,
) -> Dict:
    """Create an event. Either course_id or course_name should identify the course."""
    if max_players <= 0:
        raise ValueError("max_players must be positive")
    if slots_per_group <= 0:
        raise ValueError("slots_per_group must be positive")
    if course_id is not None and await session.get(Course, course_id) is None:
        raise ValueError("Course not found")

    event = Event(
        date=date,
        first_tee_time=first_tee_time,
        max_players=max_players,
        course_id=course_id,
        course_name=course_name,
        slots_per_group=slots_per_group,
        tee_interval_minutes=tee_interval_minutes,
        notes=notes,
        is_locked=False,
    )
    session.add(event)
    await session.commit()
    return _event_to_dict(await get_event_row(session, event.id))


async def get_event(session: AsyncSession, event_id: int) -> Optional[Dict]:
    """Get an event by ID, or None."""
    try:
        return _event_to_dict(await get_event_row(session, event_id))
    except EventNotFound:
        return None


async def list_events(session: AsyncSession, upcoming_only: bool = False) -> List[Dict]:
    """List events, most recent first."""
    query = select(Event).options(selectinload(Event.course)).order_by(Event.date.desc())
    if upcoming_only:
        query = query.where(Event.date >= func.current_date())
    result = await session.execute(query)
    return [_event_to_dict(e) for e in result.scalars().all()]


async def set_event_locked(session: AsyncSession, event_id: int, locked: bool) -> Dict:
    """Lock or unlock an event's tee sheet."""
    event = await get_event_row(session, event_id)
    event.is_locked = locked
    await session.commit()
    logger.info(f"Event {event_id} {'locked' if locked else 'unlocked'}")
    return _event_to_dict(event)


# ============================================================================
# Event players
# ============================================================================


async def add_player_to_event(session: AsyncSession, event_id: int, player_id: int) -> Dict:
    """
    Add a player to an event with status ``invited``.

    Raises:
        EventNotFound: If the event does not exist
        ValueError: If the player is unknown, inactive, or already added
    """
    await get_event_row(session, event_id)
    player = await session.get(Player, player_id)
    if player is None or not player.is_active:
        raise ValueError("Player not found")

    existing = await session.execute(
        select(EventPlayer.id).where(
            EventPlayer.event_id == event_id,
            EventPlayer.player_id == player_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ValueError("Player already added to event")

    event_player = EventPlayer(
        event_id=event_id,
        player_id=player_id,
        status=EventPlayerStatus.INVITED,
    )
    session.add(event_player)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ValueError("Player already added to event")
    await session.refresh(event_player)
    return _event_player_to_dict(event_player, player)


async def list_event_players(
    session: AsyncSession,
    event_id: int,
    status: Optional[Union[str, EventPlayerStatus]] = None,
) -> List[Dict]:
    """List an event's players, optionally filtered by status, ordered by name."""
    query = (
        select(EventPlayer, Player)
        .join(Player, EventPlayer.player_id == Player.id)
        .where(EventPlayer.event_id == event_id)
        .order_by(Player.name.asc())
    )
    if status is not None:
        query = query.where(EventPlayer.status == EventPlayerStatus(status))
    result = await session.execute(query)
    return [_event_player_to_dict(ep, p) for ep, p in result.all()]


async def get_available_players(session: AsyncSession, event_id: int) -> List[Dict]:
    """Active players not yet added to the event."""
    already_added = select(EventPlayer.player_id).where(EventPlayer.event_id == event_id)
    result = await session.execute(
        select(Player)
        .where(Player.is_active == True, Player.id.not_in(already_added))  # noqa: E712
        .order_by(Player.name.asc())
    )
    return [_player_to_dict(p) for p in result.scalars().all()]


async def get_playing_count(
    session: AsyncSession,
    event_id: int,
    exclude_event_player_id: Optional[int] = None,
) -> int:
    """Count EventPlayers with status ``playing``."""
    query = select(func.count(EventPlayer.id)).where(
        EventPlayer.event_id == event_id,
        EventPlayer.status == EventPlayerStatus.PLAYING,
    )
    if exclude_event_player_id is not None:
        query = query.where(EventPlayer.id != exclude_event_player_id)
    result = await session.execute(query)
    return result.scalar_one()


async def update_event_player_status(
    session: AsyncSession,
    event_player_id: int,
    status: Union[str, EventPlayerStatus],
    expected_status: Optional[Union[str, EventPlayerStatus]] = None,
) -> Optional[Dict]:
    """
    Change an EventPlayer's status.

    The playing count is re-read inside the write transaction with the event
    row locked, so two concurrent promotions on PostgreSQL cannot both pass
    the capacity check. When ``expected_status`` is given the write only
    applies if the row still has that status.

    Args:
        session: Database session
        event_player_id: EventPlayer ID
        status: Target status
        expected_status: Optional prior status for compare-and-swap

    Returns:
        Updated EventPlayer dict, or None if the row does not exist

    Raises:
        CapacityExceeded: If the event is full and status is ``playing``
        StaleUpdate: If the row's status no longer matches expected_status
    """
    target = EventPlayerStatus(status)
    event_player = await session.get(EventPlayer, event_player_id)
    if event_player is None:
        return None

    event = await get_event_row(session, event_player.event_id, for_update=True)
    playing_count = await get_playing_count(
        session, event.id, exclude_event_player_id=event_player.id
    )
    try:
        capacity_service.ensure_can_transition(playing_count, event.max_players, target)
    except CapacityExceeded:
        await session.rollback()
        raise

    stmt = update(EventPlayer).where(EventPlayer.id == event_player_id).values(status=target)
    if expected_status is not None:
        stmt = stmt.where(EventPlayer.status == EventPlayerStatus(expected_status))
    result = await session.execute(stmt)
    if result.rowcount == 0:
        await session.rollback()
        raise StaleUpdate("Player status was changed by someone else. Refresh and try again.")

    await session.commit()
    await session.refresh(event_player)
    logger.info(f"EventPlayer {event_player_id} status -> {target.value}")
    return _event_player_to_dict(event_player)
