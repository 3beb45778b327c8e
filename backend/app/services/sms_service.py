"""Outbound SMS on behalf of an authenticated manager.

Checks run before any side effect, in this order: caller, request fields,
credentials. Only a successful Twilio send is recorded, and only when the
caller named the agent the text belongs to.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.models.sms_message import MessageDirection
from app.models.user import User
from app.services.sms_routing import record_message
from app.services.twilio_service import (
    TransportFactory,
    fit_sms_body,
    format_e164,
    validate_e164,
)

logger = logging.getLogger(__name__)


class SmsSendError(Exception):
    """Base exception for outbound send failures"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SmsUnauthorizedError(SmsSendError):
    status_code = 401


class SmsBadRequestError(SmsSendError):
    status_code = 400


class SmsNotConfiguredError(SmsSendError):
    """The manager has not saved complete Twilio credentials"""

    status_code = 412


class SmsTransportError(SmsSendError):
    """Twilio refused or failed the send"""

    status_code = 502


class SmsRecordError(SmsSendError):
    """The text was delivered but could not be written to the log"""

    status_code = 500


@dataclass
class OutboundSms:
    to: Optional[str] = None
    message: Optional[str] = None
    agent_id: Optional[str] = None


@dataclass
class OutboundResult:
    sid: str
    message_id: Optional[int] = None


def send_manager_sms(
    session: Session,
    caller: Optional[User],
    request: OutboundSms,
    transport_factory: TransportFactory,
) -> OutboundResult:
    """
    Send one text from the caller's Twilio number.

    Raises:
        SmsUnauthorizedError: no caller, or caller is not a manager
        SmsBadRequestError: `to` or `message` missing, or `to` unparseable
        SmsNotConfiguredError: account SID, auth token or number missing
        SmsTransportError: Twilio rejected the send (nothing recorded)
        SmsRecordError: sent, but the outbound record could not be saved
    """
    if caller is None or not caller.is_manager:
        raise SmsUnauthorizedError("Unauthorized")

    to = (request.to or "").strip()
    body = request.message or ""
    if not to or not body.strip():
        raise SmsBadRequestError("Missing required fields: to, message")

    try:
        to = format_e164(to)
    except ValueError as e:
        raise SmsBadRequestError(str(e))
    if not validate_e164(to):
        raise SmsBadRequestError(f"Invalid phone number: '{request.to}'")

    # What Twilio delivers is what gets recorded
    body = fit_sms_body(body)

    account_sid = caller.twilio_account_sid
    auth_token = caller.twilio_auth_token
    from_number = caller.twilio_phone_number
    if not account_sid or not auth_token or not from_number:
        raise SmsNotConfiguredError(
            "Twilio credentials not configured. Please set up your Twilio settings."
        )

    transport = transport_factory(account_sid, auth_token, from_number)
    result = transport.send_sms(to, body)
    if result.get("error") or not result.get("sid"):
        raise SmsTransportError(result.get("error") or "Failed to send SMS")

    sid = result["sid"]
    if not request.agent_id:
        logger.info(f"SMS {sid} sent by {caller.email} without an agent id; not recorded")
        return OutboundResult(sid=sid)

    try:
        message = record_message(
            session,
            agent_id=request.agent_id,
            direction=MessageDirection.outbound.value,
            body=body,
            from_number=from_number,
            to_number=to,
            manager_email=caller.email,
            twilio_sid=sid,
        )
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"SMS {sid} was sent but recording it for agent {request.agent_id} failed")
        raise SmsRecordError("Message was sent but could not be saved")

    logger.info(f"Recorded outbound SMS {message.id} for agent {request.agent_id} from {caller.email}")
    return OutboundResult(sid=sid, message_id=message.id)
