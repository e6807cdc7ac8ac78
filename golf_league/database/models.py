"""
SQLAlchemy ORM models for the golf league system.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Float,
    Date,
    Time,
    DateTime,
    Enum,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from golf_league.database.db import Base


class EventPlayerStatus(str, enum.Enum):
    """Participation status of a player in an event."""

    INVITED = "invited"
    PLAYING = "playing"
    WAITLIST = "waitlist"
    NOT_PLAYING = "not_playing"


class RsvpStatus(str, enum.Enum):
    """Answer received to an SMS RSVP."""

    YES = "yes"
    NO = "no"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Course(Base):
    """Golf courses events are played on."""

    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    events = relationship("Event", back_populates="course")

    __table_args__ = (Index("idx_courses_name", "name"),)


class Player(Base):
    """League roster entry. Deactivated instead of deleted."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)  # E.164, RSVP correlation key
    handicap = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    event_entries = relationship("EventPlayer", back_populates="player")
    group_assignments = relationship("GroupAssignment", back_populates="player")
    scores = relationship("Score", back_populates="player")

    __table_args__ = (
        Index("idx_players_name", "name"),
        Index("idx_players_phone", "phone"),
        Index("idx_players_is_active", "is_active"),
    )


class Event(Base):
    """A league play date with a tee sheet."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=True)
    course_name = Column(String, nullable=True)  # Free-text fallback when no course row
    first_tee_time = Column(Time, nullable=False)
    tee_interval_minutes = Column(Integer, nullable=False, default=10, server_default="10")
    max_players = Column(Integer, nullable=False)
    slots_per_group = Column(Integer, nullable=False, default=4, server_default="4")
    is_locked = Column(Boolean, default=False, nullable=False, server_default="false")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    course = relationship("Course", back_populates="events")
    players = relationship("EventPlayer", back_populates="event", cascade="all, delete-orphan")
    groups = relationship(
        "Group",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="Group.group_number",
    )

    __table_args__ = (
        CheckConstraint("max_players > 0", name="ck_events_max_players_positive"),
        CheckConstraint("slots_per_group > 0", name="ck_events_slots_per_group_positive"),
        Index("idx_events_date", "date"),
    )


class EventPlayer(Base):
    """One player's participation state in one event."""

    __tablename__ = "event_players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    status = Column(
        Enum(EventPlayerStatus, name="event_player_status", values_callable=_enum_values),
        nullable=False,
        default=EventPlayerStatus.INVITED,
    )
    rsvp_status = Column(
        Enum(RsvpStatus, name="rsvp_status", values_callable=_enum_values),
        nullable=True,
    )
    rsvp_sent_at = Column(DateTime(timezone=True), nullable=True)  # UTC, latest dispatch
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    event = relationship("Event", back_populates="players")
    player = relationship("Player", back_populates="event_entries")

    __table_args__ = (
        UniqueConstraint("event_id", "player_id", name="uq_event_players_event_player"),
        Index("idx_event_players_event_status", "event_id", "status"),
        Index("idx_event_players_player_rsvp_sent", "player_id", "rsvp_sent_at"),
    )


class Group(Base):
    """Tee-sheet group (foursome) within an event."""

    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    group_number = Column(Integer, nullable=False)  # 1-based display order
    tee_time = Column(Time, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    event = relationship("Event", back_populates="groups")
    assignments = relationship(
        "GroupAssignment",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupAssignment.position",
    )

    __table_args__ = (
        UniqueConstraint("event_id", "group_number", name="uq_groups_event_number"),
        Index("idx_groups_event", "event_id"),
    )


class GroupAssignment(Base):
    """Places a player into one (group, position) slot of an event's tee sheet."""

    __tablename__ = "group_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Denormalized from the group so one-assignment-per-player can be a constraint
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    position = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    group = relationship("Group", back_populates="assignments")
    player = relationship("Player", back_populates="group_assignments")

    __table_args__ = (
        UniqueConstraint("event_id", "player_id", name="uq_group_assignments_event_player"),
        UniqueConstraint("group_id", "position", name="uq_group_assignments_slot"),
        CheckConstraint("position >= 0", name="ck_group_assignments_position"),
        Index("idx_group_assignments_group", "group_id"),
    )


class Score(Base):
    """Gross score posted by a player for an event."""

    __tablename__ = "scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    gross_score = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    event = relationship("Event")
    player = relationship("Player", back_populates="scores")

    __table_args__ = (
        UniqueConstraint("event_id", "player_id", name="uq_scores_event_player"),
        Index("idx_scores_player", "player_id"),
    )


class Setting(Base):
    """Application configuration overrides."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
