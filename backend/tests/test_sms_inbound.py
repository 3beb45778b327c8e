"""Tests for the Twilio inbound webhook endpoint."""

import pytest
from sqlmodel import Session, select

from app.models.agent import Agent
from app.models.sms_message import SmsMessage

WEBHOOK = "/api/sms/inbound"

PAYLOAD = {
    "From": "+15551234567",
    "To": "+18005551234",
    "Body": "hello",
    "MessageSid": "SM123",
}


@pytest.fixture
def agent(session: Session) -> Agent:
    agent = Agent(first_name="Avery", last_name="Agent", email="avery@test.com", phone="5551234567")
    session.add(agent)
    session.commit()
    session.refresh(agent)
    return agent


def _messages(session: Session):
    return session.exec(select(SmsMessage).order_by(SmsMessage.id)).all()


def _assert_empty_ack(resp):
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/xml")
    assert "<Response" in resp.text
    assert "<Message" not in resp.text


def test_inbound_records_message(client, session, agent):
    """One agent, no prior messages: recorded inbound and unattributed."""
    resp = client.post(WEBHOOK, data=PAYLOAD)
    _assert_empty_ack(resp)

    messages = _messages(session)
    assert len(messages) == 1
    msg = messages[0]
    assert msg.agent_id == agent.id
    assert msg.direction == "inbound"
    assert msg.body == "hello"
    assert msg.from_number == "+15551234567"
    assert msg.to_number == "+18005551234"
    assert msg.manager_email == ""
    assert msg.twilio_sid == "SM123"


def test_duplicate_delivery_records_twice(client, session, agent):
    """Retried webhooks are not deduplicated."""
    client.post(WEBHOOK, data=PAYLOAD)
    client.post(WEBHOOK, data=PAYLOAD)

    messages = _messages(session)
    assert len(messages) == 2
    assert all(m.twilio_sid == "SM123" for m in messages)


def test_missing_body_is_acknowledged(client, session, agent):
    resp = client.post(WEBHOOK, data={"From": "+15551234567", "To": "+18005551234"})
    _assert_empty_ack(resp)
    assert _messages(session) == []


def test_missing_from_is_acknowledged(client, session, agent):
    resp = client.post(WEBHOOK, data={"Body": "hello"})
    _assert_empty_ack(resp)
    assert _messages(session) == []


def test_empty_post_is_acknowledged(client, session):
    resp = client.post(WEBHOOK)
    _assert_empty_ack(resp)


def test_unknown_sender_is_acknowledged(client, session, agent):
    resp = client.post(WEBHOOK, data={**PAYLOAD, "From": "+19999999999"})
    _assert_empty_ack(resp)
    assert _messages(session) == []


def test_missing_sid_stored_as_blank(client, session, agent):
    payload = {k: v for k, v in PAYLOAD.items() if k != "MessageSid"}
    client.post(WEBHOOK, data=payload)

    msg = _messages(session)[0]
    assert msg.twilio_sid == ""


def test_internal_error_is_acknowledged(client, session, agent, monkeypatch):
    """Any exception inside the pipeline still returns the empty TwiML."""

    def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr("app.routes.sms.handle_inbound_sms", boom)

    resp = client.post(WEBHOOK, data=PAYLOAD)
    _assert_empty_ack(resp)
    assert _messages(session) == []


def test_reply_after_outbound_is_attributed(client, session, agent, manager_headers):
    """Once a manager texts the agent, replies land in that manager's thread."""
    resp = client.post(
        "/api/sms/send",
        json={"to": "+15551234567", "message": "hi", "agentId": agent.id},
        headers=manager_headers,
    )
    assert resp.status_code == 200

    client.post(WEBHOOK, data=PAYLOAD)

    messages = _messages(session)
    assert [m.direction for m in messages] == ["outbound", "inbound"]
    assert messages[1].manager_email == "manager@agency.com"
