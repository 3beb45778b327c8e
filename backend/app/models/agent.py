import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import String
from sqlmodel import Column, Field, SQLModel


class Phase(str, Enum):
    initial_call = "initial_call"
    pre_licensing = "pre_licensing"
    taking_exam = "taking_exam"
    licensing = "licensing"
    contracting = "contracting"
    onboarding_complete = "onboarding_complete"


class Agent(SQLModel, table=True):
    """An agent moving through the onboarding pipeline."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    first_name: str = Field(default="")
    last_name: str = Field(default="")
    email: str = Field(default="", index=True)
    phone: Optional[str] = Field(default=None)  # Free-form, as typed at intake
    agency_name: Optional[str] = Field(default=None)
    direct_upline: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    date_started: Optional[date] = Field(default=None)
    phase: str = Field(
        default=Phase.initial_call.value, sa_column=Column(String, nullable=False, index=True)
    )  # Phase value

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
