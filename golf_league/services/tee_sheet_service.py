"""
Tee sheet service: group creation and the player-to-slot reconciler.

Invariants kept here and backed by unique constraints on group_assignments:
- a player holds at most one (group, position) slot per event
- a (group, position) slot holds at most one player

Moves are a single transaction (delete prior slot, insert new slot), so a
reader never observes a player in two slots or in none mid-move.
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from golf_league.database.models import (
    EventPlayer,
    EventPlayerStatus,
    Group,
    GroupAssignment,
    Player,
)
from golf_league.services import data_service, stats_service
from golf_league.services.exceptions import (
    EventLocked,
    GroupNotFound,
    InvalidPosition,
    PlayerNotInEvent,
    SlotOccupied,
)
from golf_league.utils.datetime_utils import add_minutes

logger = logging.getLogger(__name__)

SLOT_ID_PREFIX = "slot"


def parse_slot_id(slot_id: str) -> Tuple[int, int]:
    """
    Decode a drop-target id of the form ``slot-<groupId>-<position>``.

    Raises:
        ValueError: If the id is malformed
    """
    parts = slot_id.split("-")
    if len(parts) != 3 or parts[0] != SLOT_ID_PREFIX:
        raise ValueError(f"Invalid slot id: {slot_id}")
    try:
        return int(parts[1]), int(parts[2])
    except ValueError:
        raise ValueError(f"Invalid slot id: {slot_id}")


def make_slot_id(group_id: int, position: int) -> str:
    return f"{SLOT_ID_PREFIX}-{group_id}-{position}"


async def create_groups(session: AsyncSession, event_id: int, count: int) -> List[Dict]:
    """
    Append ``count`` empty groups to an event.

    Group numbers continue after the highest existing one; tee times step
    by the event's tee interval from the first tee time.
    """
    if count <= 0:
        raise ValueError("count must be positive")

    event = await data_service.get_event_row(session, event_id, for_update=True)
    if event.is_locked:
        raise EventLocked("Event is locked")

    result = await session.execute(
        select(func.max(Group.group_number)).where(Group.event_id == event_id)
    )
    last_number = result.scalar_one_or_none() or 0

    created = []
    for offset in range(1, count + 1):
        number = last_number + offset
        group = Group(
            event_id=event_id,
            group_number=number,
            tee_time=add_minutes(event.first_tee_time, (number - 1) * event.tee_interval_minutes),
        )
        session.add(group)
        created.append(group)

    await session.commit()
    logger.info(f"Created {count} groups for event {event_id}")
    return [
        {
            "id": g.id,
            "event_id": g.event_id,
            "group_number": g.group_number,
            "tee_time": g.tee_time.strftime("%H:%M") if g.tee_time else None,
        }
        for g in created
    ]


async def move_player(
    session: AsyncSession,
    player_id: int,
    target_group_id: int,
    target_position: int,
) -> Dict:
    """
    Move a player into a tee-sheet slot, replacing any slot they held in the event.

    The whole move runs in one transaction. Other players' assignments are
    never touched: if the slot belongs to someone else the move is refused.

    Args:
        session: Database session
        player_id: Player to place
        target_group_id: Group receiving the player
        target_position: Zero-based slot index within the group

    Returns:
        Dict describing the resulting assignment

    Raises:
        GroupNotFound: Unknown target group
        EventLocked: The group's event is locked
        InvalidPosition: Position outside ``[0, slots_per_group)``
        PlayerNotInEvent: The player has no EventPlayer row in the event
        SlotOccupied: Another player holds the slot (including a concurrent writer)
    """
    group = await session.get(Group, target_group_id)
    if group is None:
        raise GroupNotFound(f"Group {target_group_id} not found")

    event = await data_service.get_event_row(session, group.event_id)
    if event.is_locked:
        raise EventLocked("Event is locked")
    if not 0 <= target_position < event.slots_per_group:
        raise InvalidPosition(
            f"Position must be between 0 and {event.slots_per_group - 1}"
        )

    membership = await session.execute(
        select(EventPlayer.id).where(
            EventPlayer.event_id == event.id,
            EventPlayer.player_id == player_id,
        )
    )
    if membership.scalar_one_or_none() is None:
        raise PlayerNotInEvent("Player is not part of this event")

    occupant = await session.execute(
        select(GroupAssignment.player_id).where(
            GroupAssignment.group_id == target_group_id,
            GroupAssignment.position == target_position,
        )
    )
    occupant_id = occupant.scalar_one_or_none()
    result = {
        "event_id": event.id,
        "group_id": target_group_id,
        "player_id": player_id,
        "position": target_position,
    }
    if occupant_id == player_id:
        return result
    if occupant_id is not None:
        raise SlotOccupied("That slot is already taken")

    await session.execute(
        delete(GroupAssignment).where(
            GroupAssignment.event_id == event.id,
            GroupAssignment.player_id == player_id,
        )
    )
    session.add(
        GroupAssignment(
            event_id=event.id,
            group_id=target_group_id,
            player_id=player_id,
            position=target_position,
        )
    )
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info(
            f"Slot {make_slot_id(target_group_id, target_position)} taken concurrently; "
            f"move of player {player_id} rejected"
        )
        raise SlotOccupied("That slot is already taken")

    logger.info(f"Moved player {player_id} to {make_slot_id(target_group_id, target_position)}")
    return result


async def remove_player(session: AsyncSession, event_id: int, player_id: int) -> bool:
    """
    Remove a player's tee-sheet assignment in an event.

    Returns:
        True if an assignment was deleted, False if the player was not assigned

    Raises:
        EventNotFound: Unknown event
        EventLocked: The event is locked
    """
    event = await data_service.get_event_row(session, event_id)
    if event.is_locked:
        raise EventLocked("Event is locked")

    result = await session.execute(
        delete(GroupAssignment).where(
            GroupAssignment.event_id == event_id,
            GroupAssignment.player_id == player_id,
        )
    )
    await session.commit()
    return result.rowcount > 0


async def get_unassigned_players(session: AsyncSession, event_id: int) -> List[Dict]:
    """
    Players with status ``playing`` that hold no slot in the event.

    Always computed from current rows.
    """
    assigned = select(GroupAssignment.player_id).where(GroupAssignment.event_id == event_id)
    result = await session.execute(
        select(EventPlayer, Player)
        .join(Player, EventPlayer.player_id == Player.id)
        .where(
            EventPlayer.event_id == event_id,
            EventPlayer.status == EventPlayerStatus.PLAYING,
            EventPlayer.player_id.not_in(assigned),
        )
        .order_by(Player.name.asc())
    )
    return [
        {
            "event_player_id": ep.id,
            "player_id": p.id,
            "name": p.name,
            "handicap": p.handicap,
        }
        for ep, p in result.all()
    ]


async def get_tee_sheet(session: AsyncSession, event_id: int) -> Dict:
    """
    Build the tee sheet for an event.

    Returns:
        Dict with the event id, lock flag, slots per group, groups (each with
        every slot, occupied or empty, and a group score to beat) and the
        unassigned players
    """
    event = await data_service.get_event_row(session, event_id)

    groups_result = await session.execute(
        select(Group).where(Group.event_id == event_id).order_by(Group.group_number.asc())
    )
    groups = groups_result.scalars().all()

    assignments_result = await session.execute(
        select(GroupAssignment, Player)
        .join(Player, GroupAssignment.player_id == Player.id)
        .where(GroupAssignment.event_id == event_id)
    )
    by_slot: Dict[Tuple[int, int], Player] = {}
    for assignment, player in assignments_result.all():
        by_slot[(assignment.group_id, assignment.position)] = player

    stats = await stats_service.get_player_stats(session, [p.id for p in by_slot.values()])

    sheet_groups = []
    for group in groups:
        slots = []
        player_ids = []
        for position in range(event.slots_per_group):
            player: Optional[Player] = by_slot.get((group.id, position))
            slot = {"slot_id": make_slot_id(group.id, position), "position": position, "player": None}
            if player is not None:
                player_ids.append(player.id)
                slot["player"] = {
                    "id": player.id,
                    "name": player.name,
                    "handicap": player.handicap,
                    "score_to_beat": stats_service.get_player_score_to_beat(stats.get(player.id)),
                }
            slots.append(slot)
        sheet_groups.append(
            {
                "id": group.id,
                "group_number": group.group_number,
                "tee_time": group.tee_time.strftime("%H:%M") if group.tee_time else None,
                "slots": slots,
                "score_to_beat": stats_service.get_group_score_to_beat(player_ids, stats),
            }
        )

    return {
        "event_id": event.id,
        "is_locked": event.is_locked,
        "slots_per_group": event.slots_per_group,
        "groups": sheet_groups,
        "unassigned": await get_unassigned_players(session, event_id),
    }
