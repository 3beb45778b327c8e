"""Inbound SMS routing.

Maps an inbound Twilio webhook to an agent and a manager, then appends it
to the SMS log:

    normalize From -> resolve agent -> attribute manager -> record message

Each step reports its outcome through InboundResult. The webhook route is
the only place that turns outcomes (and exceptions) into the fixed empty
TwiML acknowledgement.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session, col, select

from app.models.agent import Agent
from app.models.sms_message import MessageDirection, SmsMessage
from app.services.twilio_service import normalize_phone, phones_match

logger = logging.getLogger(__name__)

OUTCOME_RECORDED = "recorded"
OUTCOME_MALFORMED = "ignored_malformed"
OUTCOME_NO_AGENT = "no_agent_match"
OUTCOME_FAILED = "failed"


@dataclass
class InboundSms:
    """Fields consumed from a Twilio inbound webhook post."""

    from_number: Optional[str] = None
    to_number: Optional[str] = None
    body: Optional[str] = None
    message_sid: Optional[str] = None


@dataclass
class InboundResult:
    outcome: str
    agent_id: Optional[str] = None
    manager_email: str = ""
    message_id: Optional[int] = None


def resolve_agent(session: Session, inbound_digits: str) -> Optional[Agent]:
    """
    Find the agent whose phone matches a normalized inbound number.

    Agents are scanned in store order (created_at, id); the first agent
    whose normalized phone suffix-matches in either direction wins.
    Agents with no usable phone are skipped. Returns None on no match.
    """
    if not inbound_digits:
        return None

    agents = session.exec(
        select(Agent).order_by(col(Agent.created_at), col(Agent.id))
    ).all()
    for agent in agents:
        agent_digits = normalize_phone(agent.phone)
        if not agent_digits:
            continue
        if phones_match(inbound_digits, agent_digits):
            return agent

    logger.info(f"No agent matches inbound number ending {inbound_digits[-4:]}")
    return None


def attribute_manager(session: Session, agent_id: str) -> str:
    """
    Pick the manager who owns the conversation with an agent.

    The most recent outbound sender owns the thread. Returns "" when no
    manager has texted this agent yet.
    """
    latest = session.exec(
        select(SmsMessage)
        .where(
            SmsMessage.agent_id == agent_id,
            SmsMessage.direction == MessageDirection.outbound.value,
            SmsMessage.manager_email != "",
        )
        .order_by(col(SmsMessage.created_at).desc(), col(SmsMessage.id).desc())
    ).first()
    return latest.manager_email if latest else ""


def record_message(
    session: Session,
    *,
    agent_id: str,
    direction: str,
    body: Optional[str] = None,
    from_number: Optional[str] = None,
    to_number: Optional[str] = None,
    manager_email: Optional[str] = None,
    twilio_sid: Optional[str] = None,
) -> SmsMessage:
    """
    Append one SmsMessage row and commit.

    Missing string values are stored as "". No dedupe is applied: a
    webhook delivered twice is recorded twice.
    """
    direction = MessageDirection(direction).value

    message = SmsMessage(
        agent_id=agent_id,
        direction=direction,
        body=body or "",
        from_number=from_number or "",
        to_number=to_number or "",
        manager_email=manager_email or "",
        twilio_sid=twilio_sid or "",
    )
    session.add(message)
    session.commit()
    session.refresh(message)
    return message


def handle_inbound_sms(session: Session, inbound: InboundSms) -> InboundResult:
    """Run the inbound pipeline for one webhook delivery."""
    if not inbound.from_number or not inbound.body:
        return InboundResult(outcome=OUTCOME_MALFORMED)

    agent = resolve_agent(session, normalize_phone(inbound.from_number))
    if agent is None:
        return InboundResult(outcome=OUTCOME_NO_AGENT)

    manager_email = attribute_manager(session, agent.id)
    if not manager_email:
        logger.info(f"Inbound SMS for agent {agent.id} has no manager assigned yet")

    message = record_message(
        session,
        agent_id=agent.id,
        direction=MessageDirection.inbound.value,
        body=inbound.body,
        from_number=inbound.from_number,
        to_number=inbound.to_number,
        manager_email=manager_email,
        twilio_sid=inbound.message_sid,
    )
    logger.info(
        f"Recorded inbound SMS {message.id} for agent {agent.id} "
        f"(manager={manager_email or 'unassigned'})"
    )
    return InboundResult(
        outcome=OUTCOME_RECORDED,
        agent_id=agent.id,
        manager_email=manager_email,
        message_id=message.id,
    )
