"""Thread-safe tracking of sessions that have completed a turn."""

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from agent_cli_sdk.client.session import AgentSession


@dataclass(frozen=True)
class SessionInfo:
    """Snapshot of an active session."""

    session_id: str
    message_count: int
    started_at: float
    last_message_at: Optional[float]
    adapter: str


class ActiveSessionRegistry:
    """Maps backend session ids to live sessions."""

    def __init__(self) -> None:
        self._sessions: Dict[str, "AgentSession"] = {}
        self._lock = threading.Lock()

    def register(self, session: "AgentSession") -> None:
        if not session.session_id:
            return
        with self._lock:
            self._sessions[session.session_id] = session

    def unregister(self, session_id: str) -> Optional["AgentSession"]:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def get(self, session_id: str) -> Optional["AgentSession"]:
        with self._lock:
            return self._sessions.get(session_id)

    def list_info(self) -> List[SessionInfo]:
        with self._lock:
            sessions = list(self._sessions.items())
        return [
            SessionInfo(
                session_id=session_id,
                message_count=session.message_count,
                started_at=session.started_at,
                last_message_at=session.last_message_at,
                adapter=session.adapter.name or type(session.adapter).__name__,
            )
            for session_id, session in sessions
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
