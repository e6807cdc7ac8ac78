"""
Tests for the SMS RSVP protocol: outbound dispatch and inbound reply handling.
"""
import pytest
import pytest_asyncio
from datetime import date, datetime, time

import pytz
from sqlalchemy import update

from golf_league.database.models import EventPlayer, EventPlayerStatus, RsvpStatus
from golf_league.services import data_service, rsvp_service, settings_service
from golf_league.services.exceptions import EventNotFound, MissingCredentials
from golf_league.services.rsvp_service import ReplyKind
from golf_league.services.sms_service import SmsResult


class FakeGateway:
    """Records sends instead of calling Twilio."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send(self, to, body, from_=None):
        if to in self.fail_for:
            return SmsResult(success=False, error="Gateway rejected number")
        self.sent.append((to, body))
        return SmsResult(success=True, sid=f"SM{len(self.sent)}")


async def _event(session, day=date(2024, 6, 1), course_name="Pebble Creek"):
    return await data_service.create_event(
        session=session,
        date=day,
        first_tee_time=time(8, 0),
        max_players=8,
        course_name=course_name,
    )


async def _playing(session, event_id, name, phone):
    player = await data_service.create_player(session, name=name, phone=phone)
    entry = await data_service.add_player_to_event(session, event_id, player["id"])
    await data_service.update_event_player_status(session, entry["id"], "playing")
    return player, entry


async def _stamp(session, event_player_id, sent_at):
    await session.execute(
        update(EventPlayer).where(EventPlayer.id == event_player_id).values(rsvp_sent_at=sent_at)
    )
    await session.commit()


async def _reload(session, event_player_id):
    row = await session.get(EventPlayer, event_player_id)
    await session.refresh(row)
    return row


# ============================================================================
# Message formats
# ============================================================================


class TestMessages:
    def test_build_rsvp_message(self):
        message = rsvp_service.build_rsvp_message("Pebble Creek", "2024-06-01", "08:00:00")
        assert message == (
            "Golf League RSVP:\n"
            "Pebble Creek\n"
            "Saturday, June 1, 2024\n"
            "First Tee Time: 8:00 AM\n"
            "\n"
            "Reply Y for Yes or N for No"
        )

    def test_build_rsvp_message_without_course(self):
        message = rsvp_service.build_rsvp_message(None, date(2024, 6, 1), time(8, 0))
        assert message.splitlines()[1] == "TBD"

    @pytest.mark.parametrize(
        "body,expected",
        [
            ("Y", RsvpStatus.YES),
            (" yes ", RsvpStatus.YES),
            ("YeS", RsvpStatus.YES),
            ("n", RsvpStatus.NO),
            ("No\n", RsvpStatus.NO),
            ("maybe", None),
            ("", None),
            (None, None),
            ("yes please", None),
        ],
    )
    def test_normalize_reply(self, body, expected):
        assert rsvp_service.normalize_reply(body) == expected

    def test_twiml_escapes_text(self):
        xml = rsvp_service.twiml_message("Tom & Jerry <3")
        assert xml == (
            '<?xml version="1.0" encoding="UTF-8"?>'
            "<Response><Message>Tom &amp; Jerry &lt;3</Message></Response>"
        )

    def test_confirmation_messages(self):
        assert rsvp_service.confirmation_message("Ann", RsvpStatus.YES) == (
            "Thanks Ann! You're confirmed for the game."
        )
        assert rsvp_service.confirmation_message("Ann", RsvpStatus.NO) == (
            "Thanks Ann. Sorry you can't make it this time."
        )

    def test_summary_to_dict(self):
        summary = rsvp_service.DispatchSummary(
            [
                rsvp_service.DispatchResult(1, "Ann", success=True),
                rsvp_service.DispatchResult(2, "Bob", success=False, error="No phone number"),
            ]
        )
        assert summary.to_dict() == {
            "success": True,
            "message": "Sent 1 of 2 RSVPs",
            "results": [
                {"playerId": 1, "playerName": "Ann", "success": True},
                {"playerId": 2, "playerName": "Bob", "success": False, "error": "No phone number"},
            ],
        }


# ============================================================================
# Outbound dispatch
# ============================================================================


@pytest.mark.asyncio
async def test_send_rsvp_skips_players_without_phone(db_session):
    event = await _event(db_session)
    ann, ann_entry = await _playing(db_session, event["id"], "Ann", "5551110001")
    bob, bob_entry = await _playing(db_session, event["id"], "Bob", None)
    cal, cal_entry = await _playing(db_session, event["id"], "Cal", "5551110003")
    gateway = FakeGateway()

    summary = await rsvp_service.send_rsvp(db_session, event["id"], gateway=gateway)

    assert [to for to, _ in gateway.sent] == ["+15551110001", "+15551110003"]
    assert summary.sent_count == 2
    assert summary.message == "Sent 2 of 3 RSVPs"
    failures = [r for r in summary.results if not r.success]
    assert len(failures) == 1
    assert failures[0].player_id == bob["id"]
    assert failures[0].error == "No phone number"

    assert (await _reload(db_session, ann_entry["id"])).rsvp_sent_at is not None
    assert (await _reload(db_session, bob_entry["id"])).rsvp_sent_at is None
    assert (await _reload(db_session, cal_entry["id"])).rsvp_sent_at is not None


@pytest.mark.asyncio
async def test_send_rsvp_only_targets_playing(db_session):
    event = await _event(db_session)
    await _playing(db_session, event["id"], "Ann", "5551110001")
    waiting = await data_service.create_player(db_session, name="Wes", phone="5551110009")
    entry = await data_service.add_player_to_event(db_session, event["id"], waiting["id"])
    await data_service.update_event_player_status(db_session, entry["id"], "waitlist")
    gateway = FakeGateway()

    summary = await rsvp_service.send_rsvp(db_session, event["id"], gateway=gateway)

    assert len(summary.results) == 1
    assert [to for to, _ in gateway.sent] == ["+15551110001"]
    _, body = gateway.sent[0]
    assert body.startswith("Golf League RSVP:\nPebble Creek\nSaturday, June 1, 2024\n")


@pytest.mark.asyncio
async def test_send_rsvp_gateway_failure_continues(db_session):
    event = await _event(db_session)
    _, ann_entry = await _playing(db_session, event["id"], "Ann", "5551110001")
    await _playing(db_session, event["id"], "Bob", "5551110002")
    gateway = FakeGateway(fail_for={"+15551110001"})

    summary = await rsvp_service.send_rsvp(db_session, event["id"], gateway=gateway)

    assert [r.success for r in summary.results] == [False, True]
    assert summary.results[0].error == "Gateway rejected number"
    assert (await _reload(db_session, ann_entry["id"])).rsvp_sent_at is None


class RaisingGateway(FakeGateway):
    """Raises for the listed numbers instead of returning a failed result."""

    async def send(self, to, body, from_=None):
        if to in self.fail_for:
            raise RuntimeError("gateway blew up")
        return await super().send(to, body, from_)


@pytest.mark.asyncio
async def test_send_rsvp_gateway_exception_does_not_stop_batch(db_session):
    event = await _event(db_session)
    _, ann_entry = await _playing(db_session, event["id"], "Ann", "5551110001")
    _, bob_entry = await _playing(db_session, event["id"], "Bob", "5551110002")
    gateway = RaisingGateway(fail_for={"+15551110001"})

    summary = await rsvp_service.send_rsvp(db_session, event["id"], gateway=gateway)

    assert [r.success for r in summary.results] == [False, True]
    assert summary.results[0].error == "gateway blew up"
    assert [to for to, _ in gateway.sent] == ["+15551110002"]
    assert summary.message == "Sent 1 of 2 RSVPs"
    assert (await _reload(db_session, ann_entry["id"])).rsvp_sent_at is None
    assert (await _reload(db_session, bob_entry["id"])).rsvp_sent_at is not None


@pytest.mark.asyncio
async def test_send_rsvp_missing_credentials(db_session, monkeypatch):
    for var in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER"):
        monkeypatch.delenv(var, raising=False)
    event = await _event(db_session)
    _, entry = await _playing(db_session, event["id"], "Ann", "5551110001")

    with pytest.raises(MissingCredentials):
        await rsvp_service.send_rsvp(db_session, event["id"])

    assert (await _reload(db_session, entry["id"])).rsvp_sent_at is None


@pytest.mark.asyncio
async def test_send_rsvp_sms_disabled_by_setting(db_session, twilio_env):
    event = await _event(db_session)
    _, entry = await _playing(db_session, event["id"], "Ann", "5551110001")
    await settings_service.set_setting(db_session, "enable_sms", "false")

    summary = await rsvp_service.send_rsvp(db_session, event["id"])

    assert summary.sent_count == 0
    assert summary.results[0].error == "SMS sending is disabled"
    assert (await _reload(db_session, entry["id"])).rsvp_sent_at is None


@pytest.mark.asyncio
async def test_send_rsvp_unknown_event(db_session):
    with pytest.raises(EventNotFound):
        await rsvp_service.send_rsvp(db_session, 999, gateway=FakeGateway())


# ============================================================================
# Inbound replies
# ============================================================================


@pytest.mark.asyncio
async def test_reply_yes_updates_status(db_session):
    event = await _event(db_session)
    player = await data_service.create_player(db_session, name="Ann", phone="5551110001")
    entry = await data_service.add_player_to_event(db_session, event["id"], player["id"])
    await _stamp(db_session, entry["id"], datetime(2024, 5, 25, 12, 0, tzinfo=pytz.UTC))

    reply = await rsvp_service.receive_reply(db_session, "+15551110001", " yes ")

    assert reply.kind == ReplyKind.CONFIRMED_YES
    assert reply.message == "Thanks Ann! You're confirmed for the game."
    assert reply.event_player_id == entry["id"]
    row = await _reload(db_session, entry["id"])
    assert row.rsvp_status == RsvpStatus.YES
    assert row.status == EventPlayerStatus.PLAYING


@pytest.mark.asyncio
async def test_reply_no_updates_status(db_session):
    event = await _event(db_session)
    _, entry = await _playing(db_session, event["id"], "Ann", "5551110001")
    await _stamp(db_session, entry["id"], datetime(2024, 5, 25, 12, 0, tzinfo=pytz.UTC))

    reply = await rsvp_service.receive_reply(db_session, "+15551110001", "n")

    assert reply.kind == ReplyKind.CONFIRMED_NO
    row = await _reload(db_session, entry["id"])
    assert row.rsvp_status == RsvpStatus.NO
    assert row.status == EventPlayerStatus.NOT_PLAYING


@pytest.mark.asyncio
async def test_reply_goes_to_latest_request(db_session):
    """With requests sent at T1 < T2, only the T2 row changes."""
    player = await data_service.create_player(db_session, name="Ann", phone="5551110001")
    first_event = await _event(db_session, day=date(2024, 6, 1))
    second_event = await _event(db_session, day=date(2024, 6, 8))
    first = await data_service.add_player_to_event(db_session, first_event["id"], player["id"])
    second = await data_service.add_player_to_event(db_session, second_event["id"], player["id"])
    await _stamp(db_session, first["id"], datetime(2024, 5, 25, 12, 0, tzinfo=pytz.UTC))
    await _stamp(db_session, second["id"], datetime(2024, 6, 1, 12, 0, tzinfo=pytz.UTC))

    reply = await rsvp_service.receive_reply(db_session, "+15551110001", "Y")

    assert reply.event_player_id == second["id"]
    assert (await _reload(db_session, second["id"])).rsvp_status == RsvpStatus.YES
    untouched = await _reload(db_session, first["id"])
    assert untouched.rsvp_status is None
    assert untouched.status == EventPlayerStatus.INVITED


@pytest.mark.asyncio
async def test_reply_shared_phone_uses_latest_request(db_session):
    event_a = await _event(db_session, day=date(2024, 6, 1))
    event_b = await _event(db_session, day=date(2024, 6, 8))
    ann = await data_service.create_player(db_session, name="Ann", phone="5551110001")
    bob = await data_service.create_player(db_session, name="Bob", phone="5551110001")
    ann_entry = await data_service.add_player_to_event(db_session, event_a["id"], ann["id"])
    bob_entry = await data_service.add_player_to_event(db_session, event_b["id"], bob["id"])
    await _stamp(db_session, ann_entry["id"], datetime(2024, 5, 25, 12, 0, tzinfo=pytz.UTC))
    await _stamp(db_session, bob_entry["id"], datetime(2024, 5, 26, 12, 0, tzinfo=pytz.UTC))

    reply = await rsvp_service.receive_reply(db_session, "+15551110001", "N")

    assert reply.event_player_id == bob_entry["id"]
    assert "Bob" in reply.message
    assert (await _reload(db_session, ann_entry["id"])).rsvp_status is None


@pytest.mark.asyncio
async def test_reply_unrecognized_text(db_session):
    event = await _event(db_session)
    _, entry = await _playing(db_session, event["id"], "Ann", "5551110001")
    await _stamp(db_session, entry["id"], datetime(2024, 5, 25, 12, 0, tzinfo=pytz.UTC))

    reply = await rsvp_service.receive_reply(db_session, "+15551110001", "maybe")

    assert reply.kind == ReplyKind.HELP
    assert reply.message == "Please reply Y for Yes or N for No"
    row = await _reload(db_session, entry["id"])
    assert row.rsvp_status is None
    assert row.status == EventPlayerStatus.PLAYING


@pytest.mark.asyncio
async def test_reply_unknown_phone(db_session):
    reply = await rsvp_service.receive_reply(db_session, "+15550001", "Y")

    assert reply.kind == ReplyKind.NOT_RECOGNIZED
    assert reply.message == "Phone number not recognized"


@pytest.mark.asyncio
async def test_reply_from_inactive_player_not_recognized(db_session):
    player = await data_service.create_player(db_session, name="Ann", phone="5551110001")
    await data_service.deactivate_player(db_session, player["id"])

    reply = await rsvp_service.receive_reply(db_session, "+15551110001", "Y")

    assert reply.kind == ReplyKind.NOT_RECOGNIZED


@pytest.mark.asyncio
async def test_reply_without_outstanding_request(db_session):
    event = await _event(db_session)
    await _playing(db_session, event["id"], "Ann", "5551110001")

    reply = await rsvp_service.receive_reply(db_session, "+15551110001", "Y")

    assert reply.kind == ReplyKind.NO_RECENT_RSVP
    assert reply.message == "No recent RSVP request found"


@pytest.mark.asyncio
async def test_reply_matches_formatted_sender(db_session):
    event = await _event(db_session)
    _, entry = await _playing(db_session, event["id"], "Ann", "5551110001")
    await _stamp(db_session, entry["id"], datetime(2024, 5, 25, 12, 0, tzinfo=pytz.UTC))

    reply = await rsvp_service.receive_reply(db_session, "(555) 111-0001", "y")

    assert reply.kind == ReplyKind.CONFIRMED_YES
