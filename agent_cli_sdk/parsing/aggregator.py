"""
ResponseAggregator: folds a stream of events into one ExecutionResponse.

The aggregator is backend-agnostic. It walks the events once, asks the
backend's EventRules to translate each event into signals, and accumulates
those signals.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from agent_cli_sdk.parsing.json_extractor import ResponseSchema, validate_structured_output
from agent_cli_sdk.parsing.signals import (
    CostSignal,
    ErrorSignal,
    FileChange,
    FinalText,
    SessionIdSignal,
    Signal,
    TextDelta,
    ToolUse,
    UsageSignal,
)
from agent_cli_sdk.types.events import StreamEvent
from agent_cli_sdk.types.response import (
    ActionLog,
    ExecutionResponse,
    ExecutionStatus,
    ModelUsage,
    RawOutput,
    ResponseError,
    ResponseMetadata,
    TokenUsage,
)

logger = logging.getLogger(__name__)

NO_OUTPUT = "NO_OUTPUT"
EXECUTION_FAILED = "EXECUTION_FAILED"


class EventRules(Protocol):
    """Backend-specific interpretation of stream events."""

    def interpret(self, event: StreamEvent) -> List[Signal]:
        """Translate one event into zero or more normalized signals."""
        ...


class _Accumulator:
    """Mutable state of a single aggregation pass."""

    def __init__(self) -> None:
        self.session_id: Optional[str] = None
        self.deltas: List[str] = []
        self.final_text: Optional[str] = None
        self.tools: Dict[str, None] = {}
        self.files: Dict[str, None] = {}
        self.actions: List[ActionLog] = []
        self.input_tokens = 0
        self.output_tokens = 0
        self.total_tokens = 0
        self.saw_usage = False
        self.model_usage: Dict[str, ModelUsage] = {}
        self.cost: Optional[float] = None
        self.error: Optional[ErrorSignal] = None

    def apply(self, signal: Signal, event: StreamEvent) -> None:
        if isinstance(signal, SessionIdSignal):
            if signal.session_id:
                self.session_id = signal.session_id
        elif isinstance(signal, TextDelta):
            self.deltas.append(signal.text)
        elif isinstance(signal, FinalText):
            self.final_text = signal.text
        elif isinstance(signal, ToolUse):
            self.tools.setdefault(signal.name, None)
            self.actions.append(
                ActionLog(
                    type="tool_use",
                    description=signal.description or signal.name,
                    timestamp=event.timestamp,
                    metadata={"tool": signal.name, **signal.metadata},
                )
            )
        elif isinstance(signal, FileChange):
            self.files.setdefault(signal.path, None)
        elif isinstance(signal, UsageSignal):
            self._add_usage(signal)
        elif isinstance(signal, CostSignal):
            self.cost = (self.cost or 0.0) + signal.usd
        elif isinstance(signal, ErrorSignal):
            if self.error is None:
                self.error = signal
        else:
            raise TypeError(f"Unknown signal: {signal!r}")

    def _add_usage(self, signal: UsageSignal) -> None:
        self.saw_usage = True
        self.input_tokens += signal.input_tokens
        self.output_tokens += signal.output_tokens
        self.total_tokens += signal.total
        if signal.model is None:
            return
        previous = self.model_usage.get(signal.model, ModelUsage(model=signal.model))
        self.model_usage[signal.model] = ModelUsage(
            input_tokens=previous.input_tokens + signal.input_tokens,
            output_tokens=previous.output_tokens + signal.output_tokens,
            total_tokens=previous.total_tokens + signal.total,
            model=signal.model,
        )

    @property
    def text(self) -> str:
        if self.final_text is not None:
            return self.final_text
        return "".join(self.deltas)


class ResponseAggregator:
    """Reduces parsed events plus process results into an ExecutionResponse."""

    def __init__(self, rules: EventRules):
        self._rules = rules

    def aggregate(
        self,
        events: Sequence[StreamEvent],
        raw_stdout: str,
        duration_ms: int,
        exit_code: int,
        response_schema: Optional[ResponseSchema] = None,
        raw_stderr: str = "",
    ) -> ExecutionResponse:
        """
        Build the response for one execution.

        Raises:
            ParseError: ``response_schema`` was given and the output did not
                contain JSON matching it
        """
        acc = _Accumulator()
        for event in events:
            for signal in self._rules.interpret(event):
                acc.apply(signal, event)

        # Not a JSONL-speaking run: the whole stdout is the answer
        text = acc.text if events else raw_stdout

        failed = exit_code != 0 or acc.error is not None
        status = ExecutionStatus.ERROR if failed else ExecutionStatus.SUCCESS
        error = self._classify_error(acc.error, exit_code, text)

        data: Any = text
        if response_schema is not None and response_schema is not False:
            if failed and not text.strip():
                logger.debug("Skipping structured output extraction for a failed run")
                data = None
            else:
                data = validate_structured_output(text, response_schema)

        usage = None
        if acc.saw_usage:
            usage = TokenUsage(
                input_tokens=acc.input_tokens,
                output_tokens=acc.output_tokens,
                total_tokens=acc.total_tokens,
            )

        models = list(acc.model_usage)
        metadata = ResponseMetadata(
            tools_used=tuple(acc.tools),
            files_modified=tuple(acc.files),
            tokens_used=usage.total_tokens if usage else None,
            model=models[-1] if models else None,
        )

        return ExecutionResponse(
            data=data,
            session_id=acc.session_id,
            status=status,
            exit_code=exit_code,
            duration_ms=duration_ms,
            events=tuple(events),
            actions=tuple(acc.actions),
            metadata=metadata,
            usage=usage,
            model_usage=dict(acc.model_usage),
            total_cost_usd=acc.cost,
            raw=RawOutput(stdout=raw_stdout, stderr=raw_stderr),
            error=error,
        )

    @staticmethod
    def _classify_error(
        signal: Optional[ErrorSignal], exit_code: int, text: str
    ) -> Optional[ResponseError]:
        if signal is not None:
            return ResponseError(
                code=signal.code, message=signal.message, details=signal.details
            )
        if exit_code == 0:
            return None
        if not text:
            return ResponseError(
                code=NO_OUTPUT,
                message=f"Process exited with code {exit_code} and produced no output",
            )
        return ResponseError(code=EXECUTION_FAILED, message=text)
