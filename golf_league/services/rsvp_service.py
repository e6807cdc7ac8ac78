"""
SMS RSVP protocol.

Outbound: ``send_rsvp`` texts every ``playing`` player of an event and stamps
``rsvp_sent_at`` on each row it reached. The stamp is the correlation key
for replies: an inbound Y/N is applied to the sender's EventPlayer row with
the most recent ``rsvp_sent_at``.

Inbound: ``receive_reply`` parses the reply, resolves the sender and updates
exactly that one row by its id. Soft failures (unknown phone, no outstanding
request, unparseable text) are answered, never raised.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import Dict, List, Optional, Union
from xml.sax.saxutils import escape

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from golf_league.database.models import (
    EventPlayer,
    EventPlayerStatus,
    Player,
    RsvpStatus,
)
from golf_league.services import data_service, settings_service, sms_service
from golf_league.services.exceptions import MissingCredentials
from golf_league.utils.constants import RSVP_NO_REPLIES, RSVP_YES_REPLIES
from golf_league.utils.datetime_utils import format_event_date, format_tee_time, utcnow
from golf_league.utils.phone_utils import normalize_phone_lenient

logger = logging.getLogger(__name__)

NO_PHONE_ERROR = "No phone number"

HELP_MESSAGE = "Please reply Y for Yes or N for No"
NOT_RECOGNIZED_MESSAGE = "Phone number not recognized"
NO_RECENT_RSVP_MESSAGE = "No recent RSVP request found"
GENERIC_ERROR_MESSAGE = "Error processing your response"


class ReplyKind(str, enum.Enum):
    HELP = "help"
    NOT_RECOGNIZED = "not_recognized"
    NO_RECENT_RSVP = "no_recent_rsvp"
    CONFIRMED_YES = "confirmed_yes"
    CONFIRMED_NO = "confirmed_no"
    ERROR = "error"


@dataclass
class RsvpReply:
    kind: ReplyKind
    message: str
    event_player_id: Optional[int] = None


@dataclass
class DispatchResult:
    player_id: Optional[int]
    player_name: Optional[str]
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        result = {
            "playerId": self.player_id,
            "playerName": self.player_name,
            "success": self.success,
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class DispatchSummary:
    results: List[DispatchResult] = field(default_factory=list)

    @property
    def sent_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def message(self) -> str:
        return f"Sent {self.sent_count} of {len(self.results)} RSVPs"

    def to_dict(self) -> Dict:
        return {
            "success": True,
            "message": self.message,
            "results": [r.to_dict() for r in self.results],
        }


# ============================================================================
# Message formats
# ============================================================================


def build_rsvp_message(
    course_name: Optional[str],
    event_date: Union[str, date],
    first_tee_time: Union[str, time],
) -> str:
    """Text of the outbound RSVP invitation."""
    return (
        "Golf League RSVP:\n"
        f"{course_name or 'TBD'}\n"
        f"{format_event_date(event_date)}\n"
        f"First Tee Time: {format_tee_time(first_tee_time)}\n"
        "\n"
        "Reply Y for Yes or N for No"
    )


def confirmation_message(player_name: str, rsvp_status: RsvpStatus) -> str:
    if rsvp_status == RsvpStatus.YES:
        return f"Thanks {player_name}! You're confirmed for the game."
    return f"Thanks {player_name}. Sorry you can't make it this time."


def twiml_message(text: str) -> str:
    """Wrap a reply in a TwiML <Response><Message> document."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<Response><Message>{escape(text)}</Message></Response>"
    )


def normalize_reply(body: Optional[str]) -> Optional[RsvpStatus]:
    """
    Map a free-text reply to an RSVP answer.

    Returns:
        RsvpStatus.YES for Y/YES, RsvpStatus.NO for N/NO (any case, surrounding
        whitespace ignored), else None
    """
    if body is None:
        return None
    text = body.strip().upper()
    if text in RSVP_YES_REPLIES:
        return RsvpStatus.YES
    if text in RSVP_NO_REPLIES:
        return RsvpStatus.NO
    return None


# ============================================================================
# Outbound
# ============================================================================


async def _default_gateway(session: AsyncSession) -> sms_service.TwilioGateway:
    config = sms_service.get_twilio_config()
    if not sms_service.twilio_configured(config):
        raise MissingCredentials("Twilio credentials not configured")
    enabled = await settings_service.get_bool_setting(
        session, "enable_sms", env_var="ENABLE_SMS", default=True
    )
    return sms_service.TwilioGateway.from_config(config, enabled=enabled)


async def send_rsvp(
    session: AsyncSession,
    event_id: int,
    gateway: Optional[sms_service.TwilioGateway] = None,
) -> DispatchSummary:
    """
    Text the RSVP invitation to every ``playing`` player of an event.

    Recipients are attempted one after another; a failure for one never
    stops the rest. Each successful send stamps ``rsvp_sent_at`` on that
    player's row and commits it immediately, so partial progress survives.

    Args:
        session: Database session
        event_id: Event to send for
        gateway: SMS gateway; built from the Twilio environment when omitted

    Returns:
        DispatchSummary with one result per recipient

    Raises:
        MissingCredentials: Twilio is not configured (nothing is sent)
        EventNotFound: Unknown event
    """
    if gateway is None:
        gateway = await _default_gateway(session)

    event = await data_service.get_event_row(session, event_id)
    body = build_rsvp_message(
        data_service.event_course_name(event), event.date, event.first_tee_time
    )

    rows = await session.execute(
        select(EventPlayer.id, Player.id, Player.name, Player.phone)
        .join(Player, EventPlayer.player_id == Player.id)
        .where(
            EventPlayer.event_id == event_id,
            EventPlayer.status == EventPlayerStatus.PLAYING,
        )
        .order_by(Player.name.asc())
    )
    recipients = rows.all()

    summary = DispatchSummary()
    for event_player_id, player_id, player_name, phone in recipients:
        if not phone:
            summary.results.append(
                DispatchResult(player_id, player_name, success=False, error=NO_PHONE_ERROR)
            )
            continue

        try:
            sms = await gateway.send(phone, body)
        except Exception as e:
            logger.error(f"Error sending RSVP to {player_name}: {e}", exc_info=True)
            summary.results.append(
                DispatchResult(player_id, player_name, success=False, error=str(e))
            )
            continue
        if not sms.success:
            logger.warning(f"Failed to send RSVP to {player_name}: {sms.error}")
            summary.results.append(
                DispatchResult(player_id, player_name, success=False, error=sms.error)
            )
            continue

        try:
            await session.execute(
                update(EventPlayer)
                .where(EventPlayer.id == event_player_id)
                .values(rsvp_sent_at=utcnow())
            )
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Sent RSVP to {player_name} but could not record it: {e}", exc_info=True)
            summary.results.append(
                DispatchResult(player_id, player_name, success=False, error=str(e))
            )
            continue

        logger.info(f"Sent RSVP to {player_name} at {phone}")
        summary.results.append(DispatchResult(player_id, player_name, success=True))

    logger.info(f"RSVP dispatch for event {event_id}: {summary.message}")
    return summary


# ============================================================================
# Inbound
# ============================================================================


async def receive_reply(session: AsyncSession, from_phone: Optional[str], body: Optional[str]) -> RsvpReply:
    """
    Apply an inbound SMS reply to the sender's most recent RSVP request.

    Sender resolution matches active players by phone. When several active
    players share the number, the reply goes to whichever of them has the
    most recently sent RSVP, which is the request the reply is answering.

    Returns:
        RsvpReply describing the outcome and the text to send back
    """
    answer = normalize_reply(body)
    if answer is None:
        return RsvpReply(ReplyKind.HELP, HELP_MESSAGE)

    phone = normalize_phone_lenient(from_phone)
    if not phone:
        return RsvpReply(ReplyKind.NOT_RECOGNIZED, NOT_RECOGNIZED_MESSAGE)

    players_result = await session.execute(
        select(Player.id).where(Player.phone == phone, Player.is_active == True)  # noqa: E712
    )
    player_ids = list(players_result.scalars().all())
    if not player_ids:
        logger.info(f"RSVP reply from unknown phone {phone}")
        return RsvpReply(ReplyKind.NOT_RECOGNIZED, NOT_RECOGNIZED_MESSAGE)
    if len(player_ids) > 1:
        logger.warning(
            f"Phone {phone} is shared by players {player_ids}; using the latest RSVP request"
        )

    latest = await session.execute(
        select(EventPlayer.id, Player.name)
        .join(Player, EventPlayer.player_id == Player.id)
        .where(
            EventPlayer.player_id.in_(player_ids),
            EventPlayer.rsvp_sent_at.is_not(None),
        )
        .order_by(EventPlayer.rsvp_sent_at.desc(), EventPlayer.id.desc())
        .limit(1)
    )
    row = latest.first()
    if row is None:
        logger.info(f"No RSVP request outstanding for {phone}")
        return RsvpReply(ReplyKind.NO_RECENT_RSVP, NO_RECENT_RSVP_MESSAGE)

    event_player_id, player_name = row
    new_status = EventPlayerStatus.PLAYING if answer == RsvpStatus.YES else EventPlayerStatus.NOT_PLAYING
    await session.execute(
        update(EventPlayer)
        .where(EventPlayer.id == event_player_id)
        .values(rsvp_status=answer, status=new_status)
    )
    await session.commit()
    logger.info(f"Updated RSVP for {player_name}: {answer.value}")

    kind = ReplyKind.CONFIRMED_YES if answer == RsvpStatus.YES else ReplyKind.CONFIRMED_NO
    return RsvpReply(kind, confirmation_message(player_name, answer), event_player_id)
