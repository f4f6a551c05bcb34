"""Public value types."""

from agent_cli_sdk.types.events import OutputData, StreamEvent
from agent_cli_sdk.types.options import (
    ClaudeOptions,
    CodexOptions,
    ExecutionOptions,
    GeminiOptions,
)
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

__all__ = [
    "ActionLog",
    "ClaudeOptions",
    "CodexOptions",
    "ExecutionOptions",
    "ExecutionResponse",
    "ExecutionStatus",
    "GeminiOptions",
    "ModelUsage",
    "OutputData",
    "RawOutput",
    "ResponseError",
    "ResponseMetadata",
    "StreamEvent",
    "TokenUsage",
]
