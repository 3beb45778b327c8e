from app.models.agent import Agent, Phase
from app.models.agent_action_progress import AgentActionProgress
from app.models.agent_manager import AgentManager
from app.models.resource import Resource
from app.models.sms_message import MessageDirection, SmsMessage
from app.models.user import User

__all__ = [
    "Agent",
    "Phase",
    "AgentActionProgress",
    "AgentManager",
    "Resource",
    "SmsMessage",
    "MessageDirection",
    "User",
]
