"""Tests for the manager outbound send endpoint."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from app.models.agent import Agent
from app.models.sms_message import SmsMessage

SEND = "/api/sms/send"


@pytest.fixture
def agent(session: Session) -> Agent:
    agent = Agent(id="A1", first_name="Avery", last_name="Agent", email="avery@test.com", phone="5551234567")
    session.add(agent)
    session.commit()
    session.refresh(agent)
    return agent


def _messages(session: Session):
    return session.exec(select(SmsMessage)).all()


def test_send_records_outbound(client, session, agent, manager, manager_headers, twilio):
    resp = client.post(
        SEND,
        json={"to": "+15551234567", "message": "hi", "agentId": "A1"},
        headers=manager_headers,
    )

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "sid": "SM999"}

    # Transport built from the manager's own credentials
    assert len(twilio.instances) == 1
    transport = twilio.instances[0]
    assert transport.account_sid == "AC123"
    assert transport.auth_token == "secret-token"
    assert transport.from_number == "+18005551234"
    assert transport.sent == [{"to": "+15551234567", "body": "hi"}]

    messages = _messages(session)
    assert len(messages) == 1
    msg = messages[0]
    assert msg.agent_id == "A1"
    assert msg.direction == "outbound"
    assert msg.body == "hi"
    assert msg.from_number == "+18005551234"
    assert msg.to_number == "+15551234567"
    assert msg.manager_email == manager.email
    assert msg.twilio_sid == "SM999"


def test_send_normalizes_destination(client, session, agent, manager_headers, twilio):
    resp = client.post(
        SEND,
        json={"to": "(555) 123-4567", "message": "hi", "agentId": "A1"},
        headers=manager_headers,
    )
    assert resp.status_code == 200
    assert twilio.instances[0].sent[0]["to"] == "+15551234567"


def test_send_without_agent_id_is_not_recorded(client, session, agent, manager_headers, twilio):
    resp = client.post(SEND, json={"to": "+15551234567", "message": "hi"}, headers=manager_headers)

    assert resp.status_code == 200
    assert resp.json()["sid"] == "SM999"
    assert len(twilio.instances[0].sent) == 1
    assert _messages(session) == []


def test_send_requires_auth(client, session, agent, twilio):
    resp = client.post(SEND, json={"to": "+15551234567", "message": "hi", "agentId": "A1"})

    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
    assert twilio.instances == []
    assert _messages(session) == []


def test_send_rejects_invalid_token(client, session, agent, twilio):
    resp = client.post(
        SEND,
        json={"to": "+15551234567", "message": "hi"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 401
    assert twilio.instances == []


def test_send_rejects_agent_user(client, session, agent, make_user, auth_headers, twilio):
    make_user(email="avery@test.com", user_type="agent")

    resp = client.post(
        SEND,
        json={"to": "+15551234567", "message": "hi"},
        headers=auth_headers("avery@test.com"),
    )
    assert resp.status_code == 401
    assert twilio.instances == []


@pytest.mark.parametrize(
    "body",
    [
        {"message": "hi"},
        {"to": "+15551234567"},
        {"to": "", "message": "hi"},
        {"to": "+15551234567", "message": "   "},
    ],
)
def test_send_missing_fields(client, session, manager_headers, twilio, body):
    resp = client.post(SEND, json=body, headers=manager_headers)

    assert resp.status_code == 400
    assert "Missing required fields" in resp.json()["error"]
    assert twilio.instances == []


def test_send_unparseable_destination(client, session, manager_headers, twilio):
    resp = client.post(SEND, json={"to": "12345", "message": "hi"}, headers=manager_headers)

    assert resp.status_code == 400
    assert twilio.instances == []


@pytest.mark.parametrize(
    "missing", ["twilio_account_sid", "twilio_auth_token", "twilio_phone_number"]
)
def test_send_without_credentials(client, session, agent, manager, manager_headers, twilio, missing):
    setattr(manager, missing, None)
    session.add(manager)
    session.commit()

    resp = client.post(
        SEND,
        json={"to": "+15551234567", "message": "hi", "agentId": "A1"},
        headers=manager_headers,
    )

    assert resp.status_code == 412
    assert "Twilio credentials not configured" in resp.json()["error"]
    assert twilio.instances == []
    assert _messages(session) == []


def test_send_transport_rejection(client, session, agent, manager_headers, twilio):
    twilio.next_result = {
        "sid": None,
        "status": "failed",
        "error": "The 'To' number +15551234567 is not a valid phone number.",
    }

    resp = client.post(
        SEND,
        json={"to": "+15551234567", "message": "hi", "agentId": "A1"},
        headers=manager_headers,
    )

    assert resp.status_code == 502
    assert resp.json() == {"error": "The 'To' number +15551234567 is not a valid phone number."}
    assert _messages(session) == []


def test_send_record_failure_after_delivery(client, session, agent, manager_headers, twilio, monkeypatch):
    """Transport succeeded but the log write failed: generic 500, no row."""

    def fail_record(*args, **kwargs):
        raise OperationalError("INSERT INTO sms_message", {}, Exception("disk I/O error"))

    monkeypatch.setattr("app.services.sms_service.record_message", fail_record)

    resp = client.post(
        SEND,
        json={"to": "+15551234567", "message": "hi", "agentId": "A1"},
        headers=manager_headers,
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "Message was sent but could not be saved"}
    assert len(twilio.instances[0].sent) == 1
    assert _messages(session) == []


def test_send_long_body_records_what_was_sent(client, session, agent, manager_headers, twilio):
    resp = client.post(
        SEND,
        json={"to": "+15551234567", "message": "x" * 2000, "agentId": "A1"},
        headers=manager_headers,
    )
    assert resp.status_code == 200

    sent = twilio.instances[0].sent[0]["body"]
    assert len(sent) == 1600
    assert sent.endswith("...")

    msg = _messages(session)[0]
    assert msg.body == sent


def test_send_rejects_overlong_international_number(client, session, manager_headers, twilio):
    resp = client.post(
        SEND,
        json={"to": "+1234567890123456789", "message": "hi"},
        headers=manager_headers,
    )
    assert resp.status_code == 400
    assert "Invalid phone number" in resp.json()["error"]
    assert twilio.instances == []
