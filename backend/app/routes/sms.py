"""SMS routes bridging agents and managers over Twilio.

Provides endpoints for:
- Receiving inbound texts (Twilio webhook)
- Sending a text from the signed-in manager's Twilio number
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session
from twilio.twiml.messaging_response import MessagingResponse

from app.auth import get_current_user
from app.database import get_session
from app.models.user import User
from app.services.sms_routing import (
    OUTCOME_FAILED,
    InboundResult,
    InboundSms,
    handle_inbound_sms,
)
from app.services.sms_service import (
    OutboundSms,
    SmsSendError,
    send_manager_sms,
)
from app.services.twilio_service import TransportFactory, get_twilio_service_factory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sms", tags=["sms"])


# ---------------------------------------------------------------------------
# Request/Response models
# ---------------------------------------------------------------------------


class SmsSendRequest(BaseModel):
    """Request body for the outbound send endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    to: Optional[str] = None
    message: Optional[str] = None
    agent_id: Optional[str] = Field(default=None, alias="agentId")


class SmsSendResponse(BaseModel):
    success: bool
    sid: str


class SmsErrorResponse(BaseModel):
    error: str


def _empty_twiml() -> Response:
    """The acknowledgement Twilio gets for every inbound delivery."""
    return Response(content=str(MessagingResponse()), media_type="text/xml")


# ---------------------------------------------------------------------------
# Inbound webhook
# ---------------------------------------------------------------------------


@router.post("/inbound")
def receive_sms(
    from_number: Optional[str] = Form(default=None, alias="From"),
    to_number: Optional[str] = Form(default=None, alias="To"),
    body: Optional[str] = Form(default=None, alias="Body"),
    message_sid: Optional[str] = Form(default=None, alias="MessageSid"),
    session: Session = Depends(get_session),
):
    """
    Twilio inbound message webhook.

    Always answers 200 with an empty TwiML response. Whether the text was
    recorded, ignored or failed is never surfaced to Twilio, so it does not
    retry.
    """
    inbound = InboundSms(
        from_number=from_number,
        to_number=to_number,
        body=body,
        message_sid=message_sid,
    )
    try:
        result = handle_inbound_sms(session, inbound)
    except Exception:
        session.rollback()
        logger.exception(f"Inbound SMS {message_sid or '<no sid>'} could not be processed")
        result = InboundResult(outcome=OUTCOME_FAILED)

    logger.info(f"Inbound SMS {message_sid or '<no sid>'}: {result.outcome}")
    return _empty_twiml()


# ---------------------------------------------------------------------------
# Outbound send
# ---------------------------------------------------------------------------


@router.post(
    "/send",
    response_model=SmsSendResponse,
    responses={
        400: {"model": SmsErrorResponse},
        401: {"model": SmsErrorResponse},
        412: {"model": SmsErrorResponse},
        500: {"model": SmsErrorResponse},
        502: {"model": SmsErrorResponse},
    },
)
def send_sms(
    body: SmsSendRequest,
    session: Session = Depends(get_session),
    caller: Optional[User] = Depends(get_current_user),
    transport_factory: TransportFactory = Depends(get_twilio_service_factory),
):
    """Text an agent from the signed-in manager's Twilio number."""
    request = OutboundSms(to=body.to, message=body.message, agent_id=body.agent_id)
    try:
        result = send_manager_sms(session, caller, request, transport_factory)
    except SmsSendError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    return SmsSendResponse(success=True, sid=result.sid)
