"""
agent-cli-sdk: drive agent CLIs (Claude Code, Codex, Gemini) from Python.

Spawns the CLI, consumes its JSONL event stream, and returns one typed
ExecutionResponse per call, with live callbacks and multi-turn sessions.
"""

from agent_cli_sdk.adapters import (
    AdapterCapabilities,
    BaseCLIAdapter,
    ClaudeAdapter,
    CodexAdapter,
    GeminiAdapter,
    cli_adapter,
    create_adapter,
    list_adapters,
)
from agent_cli_sdk.cli_agents import ProcessResult, ProcessRunner
from agent_cli_sdk.client import (
    AgentClient,
    AgentSession,
    SessionInfo,
    SessionState,
)
from agent_cli_sdk.errors import (
    AgentSDKError,
    CapabilityError,
    ErrorCategory,
    ExecutionError,
    ExecutionTimeoutError,
    ParseError,
    SessionAbortedError,
    SessionError,
    SpawnError,
    ValidationError,
)
from agent_cli_sdk.parsing import ResponseAggregator, StreamEventParser
from agent_cli_sdk.types import (
    ActionLog,
    ClaudeOptions,
    CodexOptions,
    ExecutionOptions,
    ExecutionResponse,
    ExecutionStatus,
    GeminiOptions,
    ModelUsage,
    OutputData,
    RawOutput,
    ResponseError,
    ResponseMetadata,
    StreamEvent,
    TokenUsage,
)

__version__ = "0.1.0"

__all__ = [
    "ActionLog",
    "AdapterCapabilities",
    "AgentClient",
    "AgentSDKError",
    "AgentSession",
    "BaseCLIAdapter",
    "CapabilityError",
    "ClaudeAdapter",
    "ClaudeOptions",
    "CodexAdapter",
    "CodexOptions",
    "ErrorCategory",
    "ExecutionError",
    "ExecutionOptions",
    "ExecutionResponse",
    "ExecutionStatus",
    "ExecutionTimeoutError",
    "GeminiAdapter",
    "GeminiOptions",
    "ModelUsage",
    "OutputData",
    "ParseError",
    "ProcessResult",
    "ProcessRunner",
    "RawOutput",
    "ResponseAggregator",
    "ResponseError",
    "ResponseMetadata",
    "SessionAbortedError",
    "SessionError",
    "SessionInfo",
    "SessionState",
    "SpawnError",
    "StreamEvent",
    "StreamEventParser",
    "TokenUsage",
    "ValidationError",
    "cli_adapter",
    "create_adapter",
    "list_adapters",
]
