"""
Manager settings: Twilio credentials and the agent sign-up master code.
"""

import secrets
import string
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from app.auth import require_manager
from app.database import get_session
from app.models.user import User

router = APIRouter(prefix="/api/settings", tags=["settings"])

MASTER_CODE_LENGTH = 8
_MASTER_CODE_ALPHABET = string.ascii_uppercase + string.digits


class TwilioSettingsResponse(BaseModel):
    twilio_account_sid: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    auth_token_set: bool
    configured: bool


class TwilioSettingsUpdate(BaseModel):
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None


class MasterCodeResponse(BaseModel):
    master_code: str


def _twilio_settings(user: User) -> TwilioSettingsResponse:
    # The auth token is write-only
    return TwilioSettingsResponse(
        twilio_account_sid=user.twilio_account_sid,
        twilio_phone_number=user.twilio_phone_number,
        auth_token_set=bool(user.twilio_auth_token),
        configured=bool(
            user.twilio_account_sid and user.twilio_auth_token and user.twilio_phone_number
        ),
    )


@router.get("/twilio", response_model=TwilioSettingsResponse)
def get_twilio_settings(manager: User = Depends(require_manager)):
    return _twilio_settings(manager)


@router.put("/twilio", response_model=TwilioSettingsResponse)
def update_twilio_settings(
    body: TwilioSettingsUpdate,
    session: Session = Depends(get_session),
    manager: User = Depends(require_manager),
):
    """Save Twilio credentials. Fields left out of the body are unchanged."""
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(manager, field, value.strip() if isinstance(value, str) else value)

    session.add(manager)
    session.commit()
    session.refresh(manager)
    return _twilio_settings(manager)


@router.post("/master-code", response_model=MasterCodeResponse)
def regenerate_master_code(
    session: Session = Depends(get_session),
    manager: User = Depends(require_manager),
):
    """Generate and save a new master code."""
    manager.master_code = "".join(
        secrets.choice(_MASTER_CODE_ALPHABET) for _ in range(MASTER_CODE_LENGTH)
    )
    session.add(manager)
    session.commit()
    return MasterCodeResponse(master_code=manager.master_code)
