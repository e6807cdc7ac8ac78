"""
Pydantic models for API request/response validation.
"""

import datetime as dt
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, model_validator

from golf_league.database.models import EventPlayerStatus
from golf_league.utils.constants import DEFAULT_SLOTS_PER_GROUP, DEFAULT_TEE_INTERVAL_MINUTES


# ============================================================================
# Players
# ============================================================================


class PlayerCreate(BaseModel):
    """Roster player creation payload."""

    name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    handicap: Optional[float] = None
    notes: Optional[str] = None


class PlayerUpdate(BaseModel):
    """Partial player update; only fields that are sent are applied."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    handicap: Optional[float] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class PlayerResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    handicap: Optional[float] = None
    notes: Optional[str] = None
    is_active: bool


# ============================================================================
# Events
# ============================================================================


class CourseCreate(BaseModel):
    name: str = Field(min_length=1)


class CourseResponse(BaseModel):
    id: int
    name: str


class EventCreate(BaseModel):
    """Event creation payload. Identify the course by id or by name."""

    date: dt.date
    first_tee_time: dt.time
    max_players: int = Field(gt=0)
    course_id: Optional[int] = None
    course_name: Optional[str] = None
    slots_per_group: int = Field(default=DEFAULT_SLOTS_PER_GROUP, gt=0)
    tee_interval_minutes: int = Field(default=DEFAULT_TEE_INTERVAL_MINUTES, ge=0)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def require_course(self):
        if self.course_id is None and not (self.course_name and self.course_name.strip()):
            raise ValueError("course_id or course_name is required")
        return self


class EventResponse(BaseModel):
    id: int
    date: str
    course_id: Optional[int] = None
    course_name: Optional[str] = None
    first_tee_time: str
    tee_interval_minutes: int
    max_players: int
    slots_per_group: int
    is_locked: bool
    notes: Optional[str] = None


class AddEventPlayerRequest(BaseModel):
    player_id: int


class EventPlayerResponse(BaseModel):
    id: int
    event_id: int
    player_id: int
    status: EventPlayerStatus
    rsvp_status: Optional[str] = None
    rsvp_sent_at: Optional[str] = None
    player: Optional[PlayerResponse] = None


class EventPlayerStatusUpdate(BaseModel):
    """Status change; ``expected_status`` turns it into a compare-and-swap."""

    status: EventPlayerStatus
    expected_status: Optional[EventPlayerStatus] = None


# ============================================================================
# Tee sheet
# ============================================================================


class CreateGroupsRequest(BaseModel):
    count: int = Field(default=1, gt=0, le=50)


class GroupResponse(BaseModel):
    id: int
    event_id: int
    group_number: int
    tee_time: Optional[str] = None


class MovePlayerRequest(BaseModel):
    """Drop a player on a slot, by ids or by the client's ``slot-<group>-<pos>`` id."""

    player_id: int
    target_group_id: Optional[int] = None
    target_position: Optional[int] = None
    slot_id: Optional[str] = None

    @model_validator(mode="after")
    def require_target(self):
        if self.slot_id is None and (self.target_group_id is None or self.target_position is None):
            raise ValueError("Provide slot_id or target_group_id and target_position")
        return self


class AssignmentResponse(BaseModel):
    event_id: int
    group_id: int
    player_id: int
    position: int


class SlotPlayer(BaseModel):
    id: int
    name: str
    handicap: Optional[float] = None
    score_to_beat: str


class SlotResponse(BaseModel):
    slot_id: str
    position: int
    player: Optional[SlotPlayer] = None


class TeeSheetGroup(BaseModel):
    id: int
    group_number: int
    tee_time: Optional[str] = None
    slots: List[SlotResponse]
    score_to_beat: Optional[str] = None


class UnassignedPlayer(BaseModel):
    event_player_id: int
    player_id: int
    name: str
    handicap: Optional[float] = None


class TeeSheetResponse(BaseModel):
    event_id: int
    is_locked: bool
    slots_per_group: int
    groups: List[TeeSheetGroup]
    unassigned: List[UnassignedPlayer]


# ============================================================================
# Scores
# ============================================================================


class ScoreCreate(BaseModel):
    event_id: int
    player_id: int
    gross_score: int = Field(gt=0)


class ScoreResponse(BaseModel):
    id: int
    event_id: int
    player_id: int
    gross_score: int


# ============================================================================
# RSVP
# ============================================================================


class SendRSVPRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: int = Field(alias="eventId")


class RSVPResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_id: Optional[int] = Field(default=None, alias="playerId")
    player_name: Optional[str] = Field(default=None, alias="playerName")
    success: bool
    error: Optional[str] = None


class SendRSVPResponse(BaseModel):
    success: bool
    message: str
    results: List[RSVPResult]
