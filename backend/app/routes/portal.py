"""
Agent portal: what a signed-in agent sees about their own onboarding.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import func
from sqlmodel import Session, col, select

from app.auth import require_user
from app.database import get_session
from app.models.agent import Agent, Phase
from app.models.agent_action_progress import AgentActionProgress
from app.models.user import User
from app.routes.agents import AgentResponse
from app.services.onboarding import (
    PHASE_INFO,
    calc_progress_percent,
    completed_keys,
    next_action_items,
    required_items,
)

router = APIRouter()


class PortalActionItem(BaseModel):
    key: str
    title: str
    description: str
    link_url: Optional[str] = None
    completed: bool


class PortalResponse(BaseModel):
    agent: AgentResponse
    phase_title: str
    phase_description: str
    progress_percent: int
    required_completed: int
    required_total: int
    next_items: List[PortalActionItem]


@router.get("/portal/me", response_model=PortalResponse)
def get_my_portal(
    session: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    """The signed-in agent's phase, progress and next three steps."""
    agent = session.exec(
        select(Agent)
        .where(func.lower(Agent.email) == user.email.lower())
        .order_by(col(Agent.created_at), col(Agent.id))
    ).first()
    if not agent:
        raise HTTPException(
            status_code=404,
            detail="Your account is being set up. You'll receive an email when your onboarding begins.",
        )

    rows = session.exec(
        select(AgentActionProgress).where(
            AgentActionProgress.agent_id == agent.id,
            AgentActionProgress.phase == agent.phase,
        )
    ).all()
    done = completed_keys(rows)
    required = required_items(agent.phase)
    percent = calc_progress_percent(agent.phase, rows)
    info = PHASE_INFO[Phase(agent.phase)]

    agent_response = AgentResponse.model_validate(agent)
    agent_response.progress_percent = percent

    return PortalResponse(
        agent=agent_response,
        phase_title=info["title"],
        phase_description=info["description"],
        progress_percent=percent,
        required_completed=sum(1 for item in required if item.key in done),
        required_total=len(required),
        next_items=[
            PortalActionItem(
                key=item.key,
                title=item.title,
                description=item.description,
                link_url=item.link_url,
                completed=item.key in done,
            )
            for item in next_action_items(agent.phase)
        ],
    )
