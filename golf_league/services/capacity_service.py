"""
Capacity policy for event participation.

Capacity is only enforced on entry into ``playing``; every other status
is always reachable. The predicate is pure, so callers must re-check it
against a fresh count right before committing.
"""

from typing import Union

from golf_league.database.models import EventPlayerStatus
from golf_league.services.exceptions import CapacityExceeded


def _as_status(status: Union[str, EventPlayerStatus]) -> EventPlayerStatus:
    if isinstance(status, EventPlayerStatus):
        return status
    return EventPlayerStatus(status)


def can_transition(
    current_playing_count: int,
    max_players: int,
    target_status: Union[str, EventPlayerStatus],
) -> bool:
    """
    Return whether a player may move to ``target_status``.

    Args:
        current_playing_count: Players currently ``playing`` in the event
        max_players: Event capacity
        target_status: Requested status

    Returns:
        False only when the target is ``playing`` and the event is full
    """
    if _as_status(target_status) != EventPlayerStatus.PLAYING:
        return True
    return current_playing_count < max_players


def ensure_can_transition(
    current_playing_count: int,
    max_players: int,
    target_status: Union[str, EventPlayerStatus],
) -> None:
    """Raise CapacityExceeded when can_transition() is False."""
    if not can_transition(current_playing_count, max_players, target_status):
        raise CapacityExceeded()
