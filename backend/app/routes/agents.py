"""
Agent Pipeline API Routes
Agent intake, the manager's pipeline view, phase transitions, per-agent SMS
thread and the phase checklist.
"""

from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from app.auth import require_manager, require_user
from app.database import get_session
from app.models.agent import Agent, Phase
from app.models.agent_action_progress import AgentActionProgress
from app.models.agent_manager import AgentManager
from app.models.sms_message import SmsMessage
from app.models.user import User
from app.services.onboarding import (
    PHASE_INFO,
    PHASE_ORDER,
    action_items,
    calc_progress_percent,
    find_action_item,
    next_phase,
    parse_phase,
)

router = APIRouter()

THREAD_LIMIT = 100

# NOT NULL on the agent table
REQUIRED_AGENT_FIELDS = ("first_name", "last_name", "email")


# ============================================================================
# Request/Response Models
# ============================================================================


class AgentCreateRequest(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    agency_name: Optional[str] = None
    direct_upline: Optional[str] = None
    notes: Optional[str] = None
    date_started: Optional[date] = None
    agent_type: str = "unlicensed"  # unlicensed|licensed


class AgentUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    agency_name: Optional[str] = None
    direct_upline: Optional[str] = None
    notes: Optional[str] = None
    date_started: Optional[date] = None
    phase: Optional[str] = None


class AgentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    agency_name: Optional[str] = None
    direct_upline: Optional[str] = None
    notes: Optional[str] = None
    date_started: Optional[date] = None
    phase: str
    created_at: datetime
    updated_at: datetime
    progress_percent: int = 0


class PhaseCount(BaseModel):
    phase: str
    label: str
    count: int
    percent: float


class PipelineResponse(BaseModel):
    total: int
    phases: List[PhaseCount]


class SmsMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    agent_id: str
    direction: str
    body: str
    from_number: str
    to_number: str
    manager_email: str
    twilio_sid: str
    created_at: datetime


class ActionItemStatus(BaseModel):
    key: str
    order: int
    title: str
    description: str
    link_url: Optional[str] = None
    required: bool
    completed: bool
    completed_at: Optional[datetime] = None


class ActionChecklistResponse(BaseModel):
    agent_id: str
    phase: str
    progress_percent: int
    items: List[ActionItemStatus]


class ActionToggleRequest(BaseModel):
    completed: bool
    phase: Optional[str] = None


# ============================================================================
# Helpers
# ============================================================================


def _get_agent_or_404(session: Session, agent_id: str) -> Agent:
    agent = session.get(Agent, agent_id)
    if not agent:
        raise HTTPException(status_code=404, detail="Agent not found")
    return agent


def _require_agent_access(agent: Agent, user: User) -> None:
    """Managers see every agent; an agent only sees their own record."""
    if user.is_manager:
        return
    if user.email and user.email.lower() == (agent.email or "").lower():
        return
    raise HTTPException(status_code=403, detail="Not allowed to view this agent")


def _managed_agents(session: Session, manager_email: str) -> List[Agent]:
    """Agents linked to a manager at intake, oldest first."""
    agent_ids = session.exec(
        select(AgentManager.agent_id).where(AgentManager.manager_email == manager_email)
    ).all()
    if not agent_ids:
        return []
    agents = session.exec(
        select(Agent)
        .where(col(Agent.id).in_(agent_ids))
        .order_by(col(Agent.created_at), col(Agent.id))
    ).all()
    return list(agents)


def _progress_rows(session: Session, agent_id: str, phase: str) -> List[AgentActionProgress]:
    return list(
        session.exec(
            select(AgentActionProgress).where(
                AgentActionProgress.agent_id == agent_id,
                AgentActionProgress.phase == phase,
            )
        ).all()
    )


def _progress_by_agent(session: Session, agents: List[Agent]) -> Dict[str, int]:
    """Current-phase progress percent for each agent, in one query."""
    if not agents:
        return {}
    rows = session.exec(
        select(AgentActionProgress).where(
            col(AgentActionProgress.agent_id).in_([a.id for a in agents])
        )
    ).all()
    grouped: Dict[str, List[AgentActionProgress]] = defaultdict(list)
    for row in rows:
        grouped[row.agent_id].append(row)

    return {
        agent.id: calc_progress_percent(
            agent.phase, [r for r in grouped[agent.id] if r.phase == agent.phase]
        )
        for agent in agents
    }


def _to_response(agent: Agent, progress_percent: int = 0) -> AgentResponse:
    response = AgentResponse.model_validate(agent)
    response.progress_percent = progress_percent
    return response


def _matches_search(agent: Agent, term: str) -> bool:
    term = term.lower()
    fields = [agent.first_name, agent.last_name, agent.email, agent.agency_name]
    return any(term in (value or "").lower() for value in fields)


# ============================================================================
# Intake & pipeline
# ============================================================================


@router.post("/agents", response_model=AgentResponse, status_code=201)
def create_agent(
    request: AgentCreateRequest,
    session: Session = Depends(get_session),
    manager: User = Depends(require_manager),
):
    """
    Agent intake.

    Licensed agents skip straight to contracting; everyone else starts at
    the initial call. The creating manager becomes the owning manager.
    """
    start_phase = Phase.contracting if request.agent_type == "licensed" else Phase.initial_call

    agent = Agent(
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        phone=request.phone,
        agency_name=request.agency_name,
        direct_upline=request.direct_upline,
        notes=request.notes,
        date_started=request.date_started or date.today(),
        phase=start_phase.value,
    )
    session.add(agent)
    session.add(AgentManager(agent_id=agent.id, manager_email=manager.email))
    session.commit()
    session.refresh(agent)
    return _to_response(agent)


@router.get("/agents", response_model=List[AgentResponse])
def list_agents(
    search: Optional[str] = Query(default=None),
    phase: str = Query(default="all"),
    session: Session = Depends(get_session),
    manager: User = Depends(require_manager),
):
    """The signed-in manager's agents, filtered by search term and phase."""
    if phase != "all":
        try:
            parse_phase(phase)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    agents = _managed_agents(session, manager.email)
    if search:
        agents = [a for a in agents if _matches_search(a, search)]
    if phase != "all":
        agents = [a for a in agents if a.phase == phase]

    progress = _progress_by_agent(session, agents)
    return [_to_response(a, progress.get(a.id, 0)) for a in agents]


@router.get("/agents/pipeline", response_model=PipelineResponse)
def get_pipeline(
    session: Session = Depends(get_session),
    manager: User = Depends(require_manager),
):
    """Per-phase agent counts and share of the pipeline."""
    agents = _managed_agents(session, manager.email)
    total = len(agents)

    phases = []
    for phase in PHASE_ORDER:
        count = sum(1 for a in agents if a.phase == phase.value)
        percent = round(count * 100 / total, 1) if total else 0.0
        phases.append(
            PhaseCount(
                phase=phase.value,
                label=PHASE_INFO[phase]["label"],
                count=count,
                percent=percent,
            )
        )
    return PipelineResponse(total=total, phases=phases)


# ============================================================================
# Single agent
# ============================================================================


@router.get("/agents/{agent_id}", response_model=AgentResponse)
def get_agent(
    agent_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    agent = _get_agent_or_404(session, agent_id)
    _require_agent_access(agent, user)
    percent = calc_progress_percent(agent.phase, _progress_rows(session, agent.id, agent.phase))
    return _to_response(agent, percent)


@router.patch("/agents/{agent_id}", response_model=AgentResponse)
def update_agent(
    agent_id: str,
    request: AgentUpdateRequest,
    session: Session = Depends(get_session),
    manager: User = Depends(require_manager),
):
    """Update agent details. Only fields present in the request change."""
    agent = _get_agent_or_404(session, agent_id)

    changes = request.model_dump(exclude_unset=True)
    if changes.get("phase") is not None:
        try:
            changes["phase"] = parse_phase(changes["phase"]).value
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    elif "phase" in changes:
        raise HTTPException(status_code=400, detail="phase cannot be null")

    for field in REQUIRED_AGENT_FIELDS:
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")

    for field, value in changes.items():
        setattr(agent, field, value)
    agent.updated_at = datetime.now(timezone.utc)

    session.add(agent)
    session.commit()
    session.refresh(agent)
    percent = calc_progress_percent(agent.phase, _progress_rows(session, agent.id, agent.phase))
    return _to_response(agent, percent)


@router.post("/agents/{agent_id}/advance", response_model=AgentResponse)
def advance_agent(
    agent_id: str,
    session: Session = Depends(get_session),
    manager: User = Depends(require_manager),
):
    """Move an agent to the next onboarding phase."""
    agent = _get_agent_or_404(session, agent_id)

    following = next_phase(agent.phase)
    if following is None:
        raise HTTPException(status_code=400, detail="Agent has already completed onboarding")

    agent.phase = following.value
    agent.updated_at = datetime.now(timezone.utc)
    session.add(agent)
    session.commit()
    session.refresh(agent)
    percent = calc_progress_percent(agent.phase, _progress_rows(session, agent.id, agent.phase))
    return _to_response(agent, percent)


@router.get("/agents/{agent_id}/messages", response_model=List[SmsMessageResponse])
def get_agent_messages(
    agent_id: str,
    session: Session = Depends(get_session),
    manager: User = Depends(require_manager),
):
    """SMS thread with an agent, oldest first."""
    _get_agent_or_404(session, agent_id)
    messages = session.exec(
        select(SmsMessage)
        .where(SmsMessage.agent_id == agent_id)
        .order_by(col(SmsMessage.created_at), col(SmsMessage.id))
        .limit(THREAD_LIMIT)
    ).all()
    return messages


# ============================================================================
# Phase checklist
# ============================================================================


def _build_checklist(session: Session, agent: Agent, phase: str) -> ActionChecklistResponse:
    rows = _progress_rows(session, agent.id, phase)
    by_key = {row.action_key: row for row in rows}

    items = []
    for item in action_items(phase):
        row = by_key.get(item.key)
        items.append(
            ActionItemStatus(
                key=item.key,
                order=item.order,
                title=item.title,
                description=item.description,
                link_url=item.link_url,
                required=item.required,
                completed=bool(row and row.completed),
                completed_at=row.completed_at if row else None,
            )
        )
    return ActionChecklistResponse(
        agent_id=agent.id,
        phase=phase,
        progress_percent=calc_progress_percent(phase, rows),
        items=items,
    )


@router.get("/agents/{agent_id}/actions", response_model=ActionChecklistResponse)
def get_agent_actions(
    agent_id: str,
    phase: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    """Checklist for a phase (defaults to the agent's current phase)."""
    agent = _get_agent_or_404(session, agent_id)
    _require_agent_access(agent, user)

    try:
        target = parse_phase(phase or agent.phase).value
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _build_checklist(session, agent, target)


@router.put("/agents/{agent_id}/actions/{action_key}", response_model=ActionChecklistResponse)
def set_agent_action(
    agent_id: str,
    action_key: str,
    request: ActionToggleRequest,
    session: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    """Mark a checklist item done or not done (upsert)."""
    agent = _get_agent_or_404(session, agent_id)
    _require_agent_access(agent, user)

    try:
        target = parse_phase(request.phase or agent.phase).value
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if find_action_item(target, action_key) is None:
        raise HTTPException(
            status_code=400, detail=f"Unknown action item '{action_key}' for phase {target}"
        )

    now = datetime.now(timezone.utc)
    row = session.exec(
        select(AgentActionProgress).where(
            AgentActionProgress.agent_id == agent.id,
            AgentActionProgress.phase == target,
            AgentActionProgress.action_key == action_key,
        )
    ).first()
    if row is None:
        row = AgentActionProgress(agent_id=agent.id, phase=target, action_key=action_key)

    row.completed = request.completed
    row.completed_at = now if request.completed else None
    row.updated_at = now

    try:
        session.add(row)
        session.commit()
    except IntegrityError:
        # Lost a race with a concurrent first toggle; the row exists now
        session.rollback()
        raise HTTPException(status_code=409, detail="Checklist item was updated concurrently, retry")

    return _build_checklist(session, agent, target)
