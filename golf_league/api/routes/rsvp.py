"""SMS RSVP route handlers: outbound trigger and the Twilio inbound webhook."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from golf_league.api.auth_dependencies import require_admin
from golf_league.api.routes import limiter
from golf_league.database.db import get_db_session
from golf_league.models.schemas import SendRSVPRequest, SendRSVPResponse
from golf_league.services import rsvp_service
from golf_league.services.exceptions import EventNotFound, MissingCredentials

logger = logging.getLogger(__name__)
router = APIRouter()

TWIML_MEDIA_TYPE = "text/xml"


@router.post(
    "/api/rsvp/send",
    response_model=SendRSVPResponse,
    response_model_exclude_none=True,
)
@limiter.limit("5/minute")
async def send_rsvp(
    request: Request,
    payload: SendRSVPRequest,
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Text RSVP invitations to an event's playing players (admin only).

    Request body:
        {"eventId": 12}

    Partial delivery is a success; per-player failures are listed in
    ``results``. Missing Twilio credentials fail the whole call.
    """
    try:
        summary = await rsvp_service.send_rsvp(session, payload.event_id)
        return summary.to_dict()
    except MissingCredentials as e:
        logger.error(f"RSVP send aborted: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    except EventNotFound as e:
        return JSONResponse(status_code=404, content={"success": False, "error": str(e)})
    except Exception as e:
        logger.error(f"Error in send-rsvp: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})


@router.post("/api/rsvp/webhook")
async def rsvp_webhook(
    From: Optional[str] = Form(None),
    Body: Optional[str] = Form(None),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Twilio inbound SMS webhook.

    Always answers 200 with TwiML so Twilio never retries; application
    failures become an apology message.
    """
    logger.info(f"Received SMS from {From}: {Body}")
    try:
        reply = await rsvp_service.receive_reply(session, From, Body)
        text = reply.message
    except Exception as e:
        logger.error(f"Error in rsvp webhook: {e}", exc_info=True)
        try:
            await session.rollback()
        except Exception:
            logger.warning("Rollback after webhook error failed", exc_info=True)
        text = rsvp_service.GENERIC_ERROR_MESSAGE

    return Response(
        content=rsvp_service.twiml_message(text),
        status_code=200,
        media_type=TWIML_MEDIA_TYPE,
    )
