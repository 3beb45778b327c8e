from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

USER_TYPE_MANAGER = "manager"
USER_TYPE_AGENT = "agent"


class User(SQLModel, table=True):
    """An authenticated account: either a manager or an agent."""

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    full_name: Optional[str] = Field(default=None)
    user_type: str = Field(default=USER_TYPE_MANAGER)  # manager|agent

    # Per-manager Twilio credentials (account-wide sending number)
    twilio_account_sid: Optional[str] = Field(default=None)
    twilio_auth_token: Optional[str] = Field(default=None)
    twilio_phone_number: Optional[str] = Field(default=None)

    master_code: Optional[str] = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def is_manager(self) -> bool:
        return self.user_type == USER_TYPE_MANAGER
