# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from app.models.agent import Agent  # noqa: F401
from app.models.agent_action_progress import AgentActionProgress  # noqa: F401
from app.models.agent_manager import AgentManager  # noqa: F401
from app.models.resource import Resource  # noqa: F401
from app.models.sms_message import SmsMessage  # noqa: F401
from app.models.user import User  # noqa: F401
