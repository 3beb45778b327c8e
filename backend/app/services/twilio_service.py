"""Twilio SMS service wrapper.

Thin wrapper around the Twilio REST API for sending SMS messages with a
single manager's credentials. Also holds the phone number helpers used to
route inbound texts.
"""

import logging
import re
from typing import Callable, Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

logger = logging.getLogger(__name__)

# Twilio rejects bodies longer than this
MAX_BODY_LENGTH = 1600


def normalize_phone(phone: Optional[str]) -> str:
    """
    Keep only the ASCII digits of a phone string, in order.

    "+1 (555) 123-4567" -> "15551234567"; None or "" -> "".
    Never raises.
    """
    if not phone:
        return ""
    return re.sub(r"[^0-9]", "", str(phone))


def phones_match(a: str, b: str) -> bool:
    """
    Symmetric suffix match between two normalized numbers.

    Tolerates a country-code prefix on either side, so "5551234567"
    matches "15551234567". Empty numbers never match.
    """
    if not a or not b:
        return False
    return a.endswith(b) or b.endswith(a)


def format_e164(phone: str, default_country: str = "1") -> str:
    """
    Normalize a phone number to E.164 format (+1XXXXXXXXXX for US).

    Accepts:
      - +15551234567  (already E.164)
      - 15551234567   (missing +)
      - 5551234567    (10-digit US)
      - (555) 123-4567
      - 555-123-4567

    Returns:
      - "+15551234567"

    Raises:
      - ValueError if phone can't be parsed
    """
    if not phone or not phone.strip():
        raise ValueError("Phone number is empty")

    digits = normalize_phone(phone)

    if len(digits) == 10:
        # US 10-digit: prepend country code
        return f"+{default_country}{digits}"
    elif len(digits) == 11 and digits.startswith(default_country):
        # US 11-digit with country code
        return f"+{digits}"
    elif len(digits) >= 10 and phone.strip().startswith("+"):
        # International format
        return f"+{digits}"
    else:
        raise ValueError(
            f"Cannot parse phone number: '{phone}'. "
            f"Expected 10-digit US number or E.164 format."
        )


def validate_e164(phone: str) -> bool:
    """Check if a phone number is valid E.164 format."""
    return bool(re.match(r"^\+[1-9]\d{6,14}$", phone))


def fit_sms_body(body: str) -> str:
    """Cut a body to Twilio's limit, ending in "..." when cut."""
    if len(body) > MAX_BODY_LENGTH:
        return body[: MAX_BODY_LENGTH - 3] + "..."
    return body


class TwilioService:
    """
    Wrapper around the Twilio REST API for one manager's account.

    Each manager brings their own account SID, auth token and sending
    number, so a service is built per send rather than shared.
    """

    def __init__(self, account_sid: str, auth_token: str, from_number: str):
        self.account_sid = account_sid
        self.from_number = from_number
        self.client = Client(account_sid, auth_token)

    def send_sms(self, to: str, body: str) -> dict:
        """
        Send a single SMS message.

        Args:
            to: Recipient phone number (E.164 format)
            body: Message text (max 1600 chars for Twilio)

        Returns:
            dict with keys: sid, status, error
        """
        body = fit_sms_body(body)

        try:
            message = self.client.messages.create(
                body=body,
                from_=self.from_number,
                to=to,
            )
        except TwilioRestException as e:
            logger.error(f"Twilio rejected SMS to {to}: {e.msg}")
            return {
                "sid": None,
                "status": "failed",
                "error": e.msg or "Failed to send SMS",
            }
        except Exception as e:
            logger.error(f"Failed to send SMS to {to}: {e}")
            return {
                "sid": None,
                "status": "failed",
                "error": str(e) or "Failed to send SMS",
            }

        logger.info(f"SMS sent to {to}: SID={message.sid}, status={message.status}")
        return {
            "sid": message.sid,
            "status": message.status,
            "error": None,
        }


TransportFactory = Callable[[str, str, str], TwilioService]


def get_twilio_service_factory() -> TransportFactory:
    """Dependency: how to build a transport from a manager's credentials."""
    return TwilioService
