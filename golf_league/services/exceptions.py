"""
Domain errors raised by the service layer.

All of them subclass ValueError so callers that only distinguish
"bad request" from "server error" keep working; routes that care map
each one to a specific status code.
"""


class GolfLeagueError(ValueError):
    """Base class for expected, user-facing failures."""


class CapacityExceeded(GolfLeagueError):
    """Moving a player to ``playing`` would exceed the event's max players."""

    def __init__(self, message: str = "Max players reached. Consider setting status to waitlist."):
        super().__init__(message)


class StaleUpdate(GolfLeagueError):
    """A conditional update found a different prior value than expected."""


class EventNotFound(GolfLeagueError):
    """No event with the given id."""


class EventLocked(GolfLeagueError):
    """The event's tee sheet is locked and read-only."""


class GroupNotFound(GolfLeagueError):
    """No group with the given id."""


class PlayerNotInEvent(GolfLeagueError):
    """The player has no EventPlayer row in the event being edited."""


class InvalidPosition(GolfLeagueError):
    """Slot position is outside ``[0, slots_per_group)``."""


class SlotOccupied(GolfLeagueError):
    """Another player already holds the target (group, position)."""


class MissingCredentials(GolfLeagueError):
    """SMS gateway credentials are not configured."""
