from typing import Optional

from sqlmodel import Field, SQLModel, UniqueConstraint


class AgentManager(SQLModel, table=True):
    """Owning-manager link, created once at agent intake."""

    __tablename__ = "agent_manager"
    __table_args__ = (
        UniqueConstraint("agent_id", "manager_email", name="uq_agent_manager"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    agent_id: str = Field(foreign_key="agent.id", index=True)
    manager_email: str = Field(index=True)
