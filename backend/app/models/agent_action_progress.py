"""Checklist progress model: one row per (agent, phase, action item)."""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel, UniqueConstraint


class AgentActionProgress(SQLModel, table=True):
    __tablename__ = "agent_action_progress"
    __table_args__ = (
        UniqueConstraint(
            "agent_id", "phase", "action_key", name="uq_agent_phase_action"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    agent_id: str = Field(foreign_key="agent.id", index=True)
    phase: str
    action_key: str
    completed: bool = Field(default=False)
    completed_at: Optional[datetime] = Field(default=None)
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
