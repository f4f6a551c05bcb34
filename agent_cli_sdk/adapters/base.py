"""
Base CLI Adapter.

Defines what every backend adapter implements (argument building and event
interpretation) and the shared execution pipeline that drives them:
validate, merge options, spawn, parse, aggregate, log.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import ValidationError as PydanticValidationError

from agent_cli_sdk.adapters.capabilities import AdapterCapabilities
from agent_cli_sdk.cli_agents.executor import ProcessRunner
from agent_cli_sdk.config import get_settings
from agent_cli_sdk.errors import (
    AgentSDKError,
    CapabilityError,
    ExecutionError,
    ValidationError,
)
from agent_cli_sdk.logging.execution_log import ExecutionLogWriter
from agent_cli_sdk.parsing.aggregator import EventRules, ResponseAggregator
from agent_cli_sdk.parsing.jsonl import StreamEventParser
from agent_cli_sdk.parsing.signals import FinalText, Signal, TextDelta
from agent_cli_sdk.types.events import OutputData, StreamEvent
from agent_cli_sdk.types.options import ExecutionOptions
from agent_cli_sdk.types.response import ExecutionResponse

logger = logging.getLogger(__name__)

# Never written to execution logs
_UNLOGGED_OPTIONS = {"on_output", "on_event", "on_stderr", "api_key", "oauth_token"}


def first_string(payload: Dict[str, Any], fields: Tuple[str, ...]) -> Optional[str]:
    """First non-empty string value among ``fields`` of ``payload``."""
    for name in fields:
        value = payload.get(name)
        if isinstance(value, str) and value:
            return value
    return None


def as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0


class _LiveOutput:
    """Feeds stdout chunks through an incremental parser to user callbacks."""

    def __init__(self, adapter: "BaseCLIAdapter", options: ExecutionOptions):
        self._rules = adapter.event_rules()
        self._final_text_is_live = adapter.final_text_is_live
        self._on_output = options.on_output
        self._on_event = options.on_event
        self._parser = StreamEventParser()
        self._accumulated: List[str] = []
        self._saw_delta = False

    def on_stdout(self, chunk: str) -> None:
        self._emit(chunk, self._parser.feed(chunk))

    def finish(self) -> None:
        events = self._parser.flush()
        if events:
            self._emit("", events)

    def _emit(self, raw: str, events: List[StreamEvent]) -> None:
        texts: List[str] = []
        for event in events:
            if self._on_event is not None:
                _safe_call(self._on_event, event, "on_event")
            for signal in self._rules.interpret(event):
                if isinstance(signal, TextDelta):
                    self._saw_delta = True
                    texts.append(signal.text)
                elif isinstance(signal, FinalText) and (
                    self._final_text_is_live or not self._saw_delta
                ):
                    # Final text repeats the deltas only when there were some
                    texts.append(signal.text)

        text = "".join(texts) or None
        if text:
            self._accumulated.append(text)
        if self._on_output is not None:
            _safe_call(
                self._on_output,
                OutputData(
                    raw=raw,
                    events=tuple(events),
                    text=text,
                    accumulated="".join(self._accumulated),
                ),
                "on_output",
            )


def _safe_call(callback: Callable[[Any], None], value: Any, name: str) -> None:
    try:
        callback(value)
    except Exception as e:
        logger.warning(f"{name} callback raised: {e}", exc_info=True)


class BaseCLIAdapter(ABC):
    """
    Base class for backend CLI adapters.

    Subclasses set ``cli_name`` and ``options_class`` and implement
    ``build_invocation_args``, ``interpret`` and ``get_capabilities``.
    Register them with ``@cli_adapter(name)``.

    Args:
        cli_path: Executable to spawn. Defaults to ``cli.<name>_path`` from
            configuration.
        defaults: Options applied to every call unless overridden.
        runner: ProcessRunner to spawn with.
        log_writer: Writer for per-execution logs.
        **config: Option fields, merged over ``defaults``.
    """

    name: str = ""
    cli_name: str = ""
    options_class: Type[ExecutionOptions] = ExecutionOptions

    # Whether FinalText counts as live text in OutputData. False where the
    # final text repeats deltas that were already streamed; it still counts
    # when a run produced no deltas.
    final_text_is_live: bool = True

    def __init__(
        self,
        cli_path: Optional[str] = None,
        defaults: Optional[ExecutionOptions] = None,
        runner: Optional[ProcessRunner] = None,
        log_writer: Optional[ExecutionLogWriter] = None,
        **config: Any,
    ):
        self.cli_path = (
            cli_path or get_settings().cli.path_for(self.cli_name) or self.cli_name
        )
        base = self.options_class().merged(defaults)
        if config:
            base = base.merged(self._validate_options(config))
        self._defaults = base
        self._runner = runner or ProcessRunner()
        self._log_writer = log_writer or ExecutionLogWriter()

    @property
    def defaults(self) -> ExecutionOptions:
        return self._defaults

    @property
    def log_writer(self) -> ExecutionLogWriter:
        return self._log_writer

    # Backend-specific surface

    @abstractmethod
    def build_invocation_args(
        self,
        prompt: str,
        options: ExecutionOptions,
        existing_session_id: Optional[str] = None,
    ) -> List[str]:
        """
        Build command arguments (not including the executable).

        Args:
            prompt: The prompt, always the final argument
            options: Fully merged options for this call
            existing_session_id: Backend session to resume, if any

        Returns:
            List of command arguments
        """
        ...

    @abstractmethod
    def interpret(self, event: StreamEvent) -> List[Signal]:
        """Translate one event into normalized signals."""
        ...

    @abstractmethod
    def get_capabilities(self) -> AdapterCapabilities:
        ...

    def event_rules(self) -> EventRules:
        """Rules for one execution. Stateful backends return a fresh object."""
        return self

    def build_env(self, options: ExecutionOptions) -> Dict[str, str]:
        """Environment added on top of the inherited one for this call."""
        return dict(options.env)

    # Shared pipeline

    def require_capability(self, capability: str) -> None:
        if not self.get_capabilities().supports(capability):
            raise CapabilityError(capability, self.name or self.cli_name)

    def resolve_options(
        self, options: Optional[ExecutionOptions] = None, **overrides: Any
    ) -> ExecutionOptions:
        """Merge defaults, ``options`` and ``overrides`` (highest last) into a new object."""
        resolved = self._defaults.merged(options)
        if overrides:
            resolved = resolved.merged(self._validate_options(overrides))
        return resolved

    def _validate_options(self, values: Dict[str, Any]) -> ExecutionOptions:
        try:
            return self.options_class(**values)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid options for {self.name or self.cli_name}: {e}") from e

    def validate(self, prompt: str, options: ExecutionOptions) -> None:
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValidationError("Prompt must be a non-empty string")
        if options.images:
            self.require_capability("multi_modal")
        if options.session_id:
            self.require_capability("session_management")

    async def execute(
        self,
        prompt: str,
        options: Optional[ExecutionOptions] = None,
        **overrides: Any,
    ) -> ExecutionResponse:
        """
        Run the CLI once and return its aggregated response.

        Raises:
            ValidationError: Empty prompt or invalid options
            CapabilityError: The call needs something this backend lacks
            SpawnError: The executable could not be started
            ExecutionTimeoutError: The run exceeded its deadline
            ParseError: Structured output was requested and not produced
        """
        opts = self.resolve_options(options, **overrides)
        self.validate(prompt, opts)

        args = self.build_invocation_args(prompt, opts, opts.session_id)
        env = self.build_env(opts)
        log_path = opts.log_path or get_settings().logging.execution_log_path
        live = _LiveOutput(self, opts) if (opts.on_output or opts.on_event) else None
        log_input = {"prompt": prompt, "options": self._loggable_options(opts)}

        logger.info(
            f"[{self.name.upper()}] Executing (session={opts.session_id or 'new'}, "
            f"model={opts.model or 'default'})"
        )
        try:
            result = await self._runner.spawn(
                self.cli_path,
                args,
                cwd=opts.working_dir,
                env=env,
                timeout_ms=opts.timeout_ms,
                idle_timeout_ms=opts.idle_timeout_ms,
                on_stdout_chunk=live.on_stdout if live else None,
                on_stderr_chunk=opts.on_stderr,
            )
            if live is not None:
                live.finish()

            events = StreamEventParser().parse(result.stdout)
            response = ResponseAggregator(self.event_rules()).aggregate(
                events,
                raw_stdout=result.stdout,
                duration_ms=result.duration_ms,
                exit_code=result.exit_code,
                response_schema=opts.response_schema,
                raw_stderr=result.stderr,
            )
        except AgentSDKError as e:
            logger.error(f"[{self.name.upper()}] Execution failed: {e}")
            self._write_logs(log_path, log_input, error=e)
            raise
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[{self.name.upper()}] Unexpected error: {e}", exc_info=True)
            wrapped = ExecutionError(f"Unexpected error running {self.name}: {e}")
            self._write_logs(log_path, log_input, error=wrapped)
            raise wrapped from e

        logger.info(
            f"[{self.name.upper()}] Completed: status={response.status.value}, "
            f"exit_code={response.exit_code}, duration={response.duration_ms}ms"
        )
        self._write_logs(log_path, log_input, output=response.to_dict())
        return response

    def _write_logs(
        self,
        log_path: Optional[str],
        input_data: Dict[str, Any],
        output: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        if not log_path:
            return
        try:
            self._log_writer.submit(log_path, input_data, output=output, error=error)
        except Exception as e:
            logger.warning(f"Could not schedule execution logs for {log_path}: {e}")

    @staticmethod
    def _loggable_options(options: ExecutionOptions) -> Dict[str, Any]:
        data = options.model_dump(
            mode="json", exclude=_UNLOGGED_OPTIONS | {"response_schema"}
        )
        schema = options.response_schema
        if isinstance(schema, type):
            data["response_schema"] = schema.__name__
        else:
            data["response_schema"] = schema
        return data
