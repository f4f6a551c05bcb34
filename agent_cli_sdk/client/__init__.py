"""Client façade and sessions."""

from agent_cli_sdk.client.agent_client import AgentClient
from agent_cli_sdk.client.registry import ActiveSessionRegistry, SessionInfo
from agent_cli_sdk.client.session import AgentSession, SessionState

__all__ = [
    "ActiveSessionRegistry",
    "AgentClient",
    "AgentSession",
    "SessionInfo",
    "SessionState",
]
