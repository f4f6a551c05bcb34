"""
AgentClient: entry point owning one adapter and its sessions.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from agent_cli_sdk.adapters.base import BaseCLIAdapter
from agent_cli_sdk.adapters.capabilities import AdapterCapabilities
from agent_cli_sdk.adapters.registry import create_adapter
from agent_cli_sdk.client.registry import ActiveSessionRegistry, SessionInfo
from agent_cli_sdk.client.session import AgentSession
from agent_cli_sdk.types.options import ExecutionOptions
from agent_cli_sdk.types.response import ExecutionResponse

logger = logging.getLogger(__name__)


class AgentClient:
    """
    Façade over a single adapter.

    Args:
        adapter: An adapter instance, or the registered name of one
            (``"claude"``, ``"codex"``, ``"gemini"``)
        working_dir: Default working directory for every call
        log_path: Default base directory for execution logs
        verbose: Default for the ``verbose`` option
        **adapter_config: Passed to create_adapter() when ``adapter`` is a name
    """

    def __init__(
        self,
        adapter: Union[BaseCLIAdapter, str],
        *,
        working_dir: Optional[str] = None,
        log_path: Optional[str] = None,
        verbose: bool = False,
        **adapter_config: Any,
    ):
        if isinstance(adapter, str):
            adapter = create_adapter(adapter, **adapter_config)
        self._adapter = adapter
        self._working_dir = working_dir
        self._log_path = log_path
        self._verbose = verbose
        self._sessions = ActiveSessionRegistry()

    @property
    def adapter(self) -> BaseCLIAdapter:
        return self._adapter

    def get_capabilities(self) -> AdapterCapabilities:
        return self._adapter.get_capabilities()

    async def execute(
        self,
        prompt: str,
        options: Optional[ExecutionOptions] = None,
        **overrides: Any,
    ) -> ExecutionResponse:
        """Run a single prompt with no session tracking."""
        return await self._adapter.execute(
            prompt, self._with_client_defaults(options), **overrides
        )

    def create_session(
        self, options: Optional[ExecutionOptions] = None, **overrides: Any
    ) -> AgentSession:
        """
        Create a conversation. It becomes visible to get_session() and
        list_active_sessions() once a successful send binds a session id.

        Raises:
            CapabilityError: The adapter cannot resume conversations
        """
        self._adapter.require_capability("session_management")
        opts = self._adapter.resolve_options(self._with_client_defaults(options), **overrides)
        return AgentSession(
            self._adapter,
            opts,
            on_session_bound=self._sessions.register,
            on_abort=self._forget,
        )

    def get_session(self, session_id: str) -> Optional[AgentSession]:
        return self._sessions.get(session_id)

    def list_active_sessions(self) -> List[SessionInfo]:
        return self._sessions.list_info()

    def abort_session(self, session_id: str) -> bool:
        """Abort a registered session. Returns False if none has that id."""
        session = self._sessions.get(session_id)
        if session is None:
            return False
        session.abort()
        # abort() normally unregisters through _forget; be explicit for
        # sessions that were already aborted
        self._sessions.unregister(session_id)
        return True

    def _forget(self, session: AgentSession) -> None:
        if session.session_id:
            self._sessions.unregister(session.session_id)
            logger.debug(f"Session {session.session_id} removed from registry")

    def _with_client_defaults(
        self, options: Optional[ExecutionOptions]
    ) -> ExecutionOptions:
        defaults: Dict[str, Any] = {}
        if self._working_dir:
            defaults["working_dir"] = self._working_dir
        if self._log_path:
            defaults["log_path"] = self._log_path
        if self._verbose:
            defaults["verbose"] = self._verbose
        base = self._adapter.resolve_options(**defaults)
        return base.merged(options)
