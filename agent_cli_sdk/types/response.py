"""ExecutionResponse and its value types."""

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from agent_cli_sdk.types.events import StreamEvent


class ExecutionStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class TokenUsage:
    """Aggregate token counters."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class ModelUsage(TokenUsage):
    """Token counters for a single model."""

    model: str = "unknown"


@dataclass(frozen=True)
class ActionLog:
    """A notable step taken by the agent during execution (e.g. a tool call)."""

    type: str
    description: str
    timestamp: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class ResponseMetadata:
    tools_used: Tuple[str, ...] = ()
    files_modified: Tuple[str, ...] = ()
    tokens_used: Optional[int] = None
    model: Optional[str] = None


@dataclass(frozen=True)
class RawOutput:
    stdout: str = ""
    stderr: str = ""


@dataclass(frozen=True)
class ResponseError:
    """In-band failure reported by a CLI that otherwise ran."""

    code: str
    message: str
    details: Optional[Dict[str, Any]] = field(default=None, hash=False)


@dataclass(frozen=True)
class ExecutionResponse:
    """The single typed result of one CLI execution."""

    data: Any
    session_id: Optional[str]
    status: ExecutionStatus
    exit_code: int
    duration_ms: int
    events: Tuple[StreamEvent, ...] = ()
    actions: Tuple[ActionLog, ...] = ()
    metadata: ResponseMetadata = field(default_factory=ResponseMetadata)
    usage: Optional[TokenUsage] = None
    model_usage: Dict[str, ModelUsage] = field(default_factory=dict, hash=False)
    total_cost_usd: Optional[float] = None
    raw: RawOutput = field(default_factory=RawOutput)
    error: Optional[ResponseError] = None

    @property
    def is_success(self) -> bool:
        return self.status is ExecutionStatus.SUCCESS

    @property
    def output(self) -> Any:
        """Alias for ``data``."""
        return self.data

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        data = self.data
        if hasattr(data, "model_dump"):
            data = data.model_dump(mode="json")
        result = {
            f: asdict(getattr(self, f)) if _is_dataclass_value(getattr(self, f)) else getattr(self, f)
            for f in (
                "session_id",
                "exit_code",
                "duration_ms",
                "metadata",
                "usage",
                "total_cost_usd",
                "raw",
                "error",
            )
        }
        result["data"] = data
        result["status"] = self.status.value
        result["events"] = [e.to_dict() for e in self.events]
        result["actions"] = [asdict(a) for a in self.actions]
        result["model_usage"] = {k: asdict(v) for k, v in self.model_usage.items()}
        return result

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_dict(), default=str, **kwargs)


def _is_dataclass_value(value: Any) -> bool:
    return hasattr(value, "__dataclass_fields__")
