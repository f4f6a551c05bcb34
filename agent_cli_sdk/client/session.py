"""
AgentSession: a multi-turn conversation with one backend CLI.

The backend assigns the conversation id on the first successful turn; every
later turn resumes it. Turns are strictly sequential.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from agent_cli_sdk.adapters.base import BaseCLIAdapter
from agent_cli_sdk.errors import SessionAbortedError, ValidationError
from agent_cli_sdk.logging.execution_log import session_message_log_path
from agent_cli_sdk.types.events import OutputData, StreamEvent
from agent_cli_sdk.types.options import ExecutionOptions
from agent_cli_sdk.types.response import ExecutionResponse

logger = logging.getLogger(__name__)

SESSION_EVENTS = ("output", "event", "complete", "error", "aborted")

Listener = Callable[[Any], None]


class SessionState(str, Enum):
    CREATED = "created"  # No backend session id bound yet
    IN_FLIGHT = "in_flight"  # A send() is running
    ACTIVE = "active"  # Backend session id bound; every turn resumes it
    ABORTED = "aborted"  # Terminal


class AgentSession:
    """
    Stateful handle on one backend conversation.

    Args:
        adapter: Adapter every turn is executed with
        options: Options applied to every turn. A ``session_id`` here resumes
            an existing conversation from the first turn.
        log_path: Base directory for per-turn logs (``message-<n>``)
        on_session_bound: Called once, after the first successful turn that
            has a backend session id bound
        on_abort: Called once when the session is aborted
    """

    def __init__(
        self,
        adapter: BaseCLIAdapter,
        options: Optional[ExecutionOptions] = None,
        *,
        log_path: Optional[str] = None,
        on_session_bound: Optional[Callable[["AgentSession"], None]] = None,
        on_abort: Optional[Callable[["AgentSession"], None]] = None,
    ):
        self._adapter = adapter
        self._options = adapter.resolve_options(options)
        self._log_path = log_path or self._options.log_path
        self._on_session_bound = on_session_bound
        self._bound_announced = False
        self._on_abort = on_abort

        self._session_id: Optional[str] = self._options.session_id
        self._state = SessionState.ACTIVE if self._session_id else SessionState.CREATED
        self._message_count = 0
        self.started_at = time.time()
        self.last_message_at: Optional[float] = None
        self.last_error: Optional[BaseException] = None

        self._lock = asyncio.Lock()
        self._current_task: Optional["asyncio.Future[ExecutionResponse]"] = None
        self._listeners: Dict[str, List[Listener]] = {name: [] for name in SESSION_EVENTS}

    @property
    def adapter(self) -> BaseCLIAdapter:
        return self._adapter

    @property
    def session_id(self) -> Optional[str]:
        """Backend conversation id; None until the first successful turn."""
        return self._session_id

    @property
    def message_count(self) -> int:
        return self._message_count

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_aborted(self) -> bool:
        return self._state is SessionState.ABORTED

    def on(self, event: str, callback: Listener) -> None:
        """Subscribe to ``output``, ``event``, ``complete``, ``error`` or ``aborted``."""
        if event not in self._listeners:
            raise ValidationError(
                f"Unknown session event '{event}'. Expected one of: {', '.join(SESSION_EVENTS)}"
            )
        self._listeners[event].append(callback)

    def off(self, event: str, callback: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    async def send(
        self,
        message: str,
        options: Optional[ExecutionOptions] = None,
        **overrides: Any,
    ) -> ExecutionResponse:
        """
        Run one turn of the conversation.

        Raises:
            SessionAbortedError: The session was aborted before or during the turn
            AgentSDKError: Whatever the adapter raised; the session keeps its
                previous state and records the error in ``last_error``
        """
        self._ensure_not_aborted()
        async with self._lock:
            self._ensure_not_aborted()

            previous_state = self._state
            opts = self._turn_options(options, overrides)
            self._state = SessionState.IN_FLIGHT
            logger.debug(
                f"Session {self._session_id or 'new'}: sending message "
                f"{self._message_count + 1} ({len(message)} chars)"
            )

            self._current_task = asyncio.ensure_future(self._adapter.execute(message, opts))
            try:
                response = await self._current_task
            except asyncio.CancelledError:
                if self.is_aborted:
                    raise SessionAbortedError(
                        "Session was aborted during send", self._session_id
                    ) from None
                self._state = previous_state
                raise
            except Exception as e:
                if self.is_aborted:
                    raise SessionAbortedError(
                        "Session was aborted during send", self._session_id
                    ) from e
                self._state = previous_state
                self.last_error = e
                logger.warning(f"Session {self._session_id or 'new'}: send failed: {e}")
                self._emit("error", e)
                raise
            finally:
                self._current_task = None

            if self.is_aborted:
                raise SessionAbortedError("Session was aborted during send", self._session_id)

            self._capture_session_id(response.session_id)
            self._message_count += 1
            self.last_message_at = time.time()
            self._state = SessionState.ACTIVE if self._session_id else SessionState.CREATED
            announce = self._session_id is not None and not self._bound_announced
            if announce:
                self._bound_announced = True

        self._emit("complete", response)
        if announce and self._on_session_bound is not None:
            self._on_session_bound(self)
        return response

    def abort(self) -> None:
        """Abort the session, killing any in-flight turn. Idempotent."""
        if self.is_aborted:
            return
        self._state = SessionState.ABORTED
        task = self._current_task
        if task is not None and not task.done():
            task.cancel()
        logger.info(f"Session {self._session_id or 'new'} aborted")
        self._emit("aborted", self._session_id)
        if self._on_abort is not None:
            self._on_abort(self)

    def _ensure_not_aborted(self) -> None:
        if self.is_aborted:
            raise SessionAbortedError("Session has been aborted", self._session_id)

    def _turn_options(
        self, options: Optional[ExecutionOptions], overrides: Dict[str, Any]
    ) -> ExecutionOptions:
        opts = self._adapter.resolve_options(self._options.merged(options), **overrides)
        user_on_output = opts.on_output
        user_on_event = opts.on_event

        def on_output(data: OutputData) -> None:
            self._call(user_on_output, data, "on_output")
            self._emit("output", data)

        def on_event(event: StreamEvent) -> None:
            self._call(user_on_event, event, "on_event")
            self._emit("event", event)

        update: Dict[str, Any] = {"on_output": on_output, "on_event": on_event}
        if self._session_id:
            update["session_id"] = self._session_id
        if self._log_path:
            update["log_path"] = session_message_log_path(
                self._log_path, self._message_count + 1
            )
        return opts.model_copy(update=update)

    def _capture_session_id(self, reported: Optional[str]) -> None:
        if not reported:
            return
        if self._session_id is None:
            self._session_id = reported
            logger.debug(f"Session id captured: {reported}")
        elif reported != self._session_id:
            logger.warning(
                f"Backend reported session id {reported} for session "
                f"{self._session_id}; keeping the original"
            )

    def _emit(self, event: str, payload: Any) -> None:
        for callback in list(self._listeners[event]):
            self._call(callback, payload, f"'{event}' listener")

    @staticmethod
    def _call(callback: Optional[Listener], payload: Any, name: str) -> None:
        if callback is None:
            return
        try:
            callback(payload)
        except Exception as e:
            logger.warning(f"Session {name} raised: {e}", exc_info=True)
