"""Tests for manager Twilio settings, the master code and the health check."""

from sqlmodel import Session

from app.models.user import User


def test_get_twilio_settings_hides_token(client, manager_headers):
    resp = client.get("/api/settings/twilio", headers=manager_headers)

    assert resp.status_code == 200
    data = resp.json()
    assert data == {
        "twilio_account_sid": "AC123",
        "twilio_phone_number": "+18005551234",
        "auth_token_set": True,
        "configured": True,
    }
    assert "secret-token" not in resp.text


def test_update_twilio_settings(client, session: Session, make_user, auth_headers):
    user = make_user(email="new-manager@agency.com", user_type="manager")
    headers = auth_headers("new-manager@agency.com")

    data = client.get("/api/settings/twilio", headers=headers).json()
    assert data["configured"] is False
    assert data["auth_token_set"] is False

    resp = client.put(
        "/api/settings/twilio",
        json={
            "twilio_account_sid": " AC999 ",
            "twilio_auth_token": "tok",
            "twilio_phone_number": "+18005550000",
        },
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["configured"] is True

    session.refresh(user)
    assert user.twilio_account_sid == "AC999"
    assert user.twilio_auth_token == "tok"


def test_partial_update_keeps_other_fields(client, session: Session, manager, manager_headers):
    resp = client.put(
        "/api/settings/twilio",
        json={"twilio_phone_number": "+18005550000"},
        headers=manager_headers,
    )
    assert resp.status_code == 200

    session.refresh(manager)
    assert manager.twilio_phone_number == "+18005550000"
    assert manager.twilio_account_sid == "AC123"
    assert manager.twilio_auth_token == "secret-token"


def test_settings_manager_only(client, make_user, auth_headers):
    make_user(email="agent@test.com", user_type="agent")
    headers = auth_headers("agent@test.com")

    assert client.get("/api/settings/twilio", headers=headers).status_code == 403
    assert client.get("/api/settings/twilio").status_code == 401


def test_regenerate_master_code(client, session: Session, manager, manager_headers):
    resp = client.post("/api/settings/master-code", headers=manager_headers)

    assert resp.status_code == 200
    code = resp.json()["master_code"]
    assert len(code) == 8
    assert code.isalnum() and code.upper() == code

    session.refresh(manager)
    assert manager.master_code == code


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_user_type_helper():
    assert User(email="m@x.com", user_type="manager").is_manager is True
    assert User(email="a@x.com", user_type="agent").is_manager is False


def test_run_serves_app_with_env(monkeypatch):
    import uvicorn

    from app import main

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setenv("HOST", "0.0.0.0")
    monkeypatch.setenv("PORT", "9001")

    main.run()

    assert len(calls) == 1
    app, kwargs = calls[0]
    assert app is main.app
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 9001
