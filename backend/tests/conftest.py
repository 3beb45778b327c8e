import os

# Keep app startup (init_db + schema patch) off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from app.auth import create_access_token  # noqa: E402
from app.database import get_session  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.twilio_service import get_twilio_service_factory  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables dropped and recreated per test so every test starts empty
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


class FakeTwilioService:
    """Stands in for TwilioService; records every build and send."""

    instances = []
    next_result = {"sid": "SM999", "status": "queued", "error": None}

    def __init__(self, account_sid, auth_token, from_number):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.sent = []
        FakeTwilioService.instances.append(self)

    def send_sms(self, to, body):
        self.sent.append({"to": to, "body": body})
        return dict(FakeTwilioService.next_result)


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema."""
    # Import all models to ensure they're registered BEFORE create_all
    from app.models.agent import Agent  # noqa: F401
    from app.models.agent_action_progress import AgentActionProgress  # noqa: F401
    from app.models.agent_manager import AgentManager  # noqa: F401
    from app.models.resource import Resource  # noqa: F401
    from app.models.sms_message import SmsMessage  # noqa: F401

    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="twilio")
def twilio_fixture():
    """The fake transport class; reset before each test."""
    FakeTwilioService.instances = []
    FakeTwilioService.next_result = {"sid": "SM999", "status": "queued", "error": None}
    return FakeTwilioService


@pytest.fixture(name="client")
def client_fixture(session: Session, twilio):
    """Provide a test client with overridden database session and transport

    Override MUST be set BEFORE TestClient() and stay in place
    for the entire duration. This ensures the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_twilio_service_factory] = lambda: twilio

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def _make_user(session: Session, **fields) -> User:
    user = User(**fields)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def manager(session: Session) -> User:
    """A manager with complete Twilio credentials."""
    return _make_user(
        session,
        email="manager@agency.com",
        full_name="Morgan Manager",
        user_type="manager",
        twilio_account_sid="AC123",
        twilio_auth_token="secret-token",
        twilio_phone_number="+18005551234",
    )


@pytest.fixture
def manager_headers(manager: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(manager.email)}"}


@pytest.fixture
def make_user(session: Session):
    def _factory(**fields) -> User:
        return _make_user(session, **fields)

    return _factory


@pytest.fixture
def auth_headers():
    """Build bearer headers for any email."""

    def _headers(email: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(email)}"}

    return _headers
