"""SMS message model: append-only log of inbound and outbound texts."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class MessageDirection(str, Enum):
    inbound = "inbound"
    outbound = "outbound"


class SmsMessage(SQLModel, table=True):
    """One text exchanged with an agent.

    Every string column is NOT NULL and defaults to "" so the record
    schema is total. Rows are never updated or deleted.
    """

    __tablename__ = "sms_message"

    id: Optional[int] = Field(default=None, primary_key=True)
    agent_id: str = Field(foreign_key="agent.id", index=True)
    direction: str  # inbound|outbound
    body: str = Field(default="")
    from_number: str = Field(default="")
    to_number: str = Field(default="")
    manager_email: str = Field(default="", index=True)  # "" if unattributed
    twilio_sid: str = Field(default="")  # "" if unavailable
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )
