"""
Normalized signals produced by adapters from backend stream events.

Each backend speaks its own event dialect. An adapter's ``interpret()`` maps
one StreamEvent onto zero or more of the signals below, and the
ResponseAggregator folds signals without knowing which backend produced them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class SessionIdSignal:
    session_id: str


@dataclass(frozen=True)
class TextDelta:
    """A streamed piece of assistant text, concatenated in arrival order."""

    text: str


@dataclass(frozen=True)
class FinalText:
    """Canonical final output. The last one seen replaces all streamed text."""

    text: str


@dataclass(frozen=True)
class ToolUse:
    name: str
    description: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class FileChange:
    path: str


@dataclass(frozen=True)
class UsageSignal:
    """Token counts. ``model`` is None for aggregate-only usage."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: Optional[int] = None
    model: Optional[str] = None

    @property
    def total(self) -> int:
        if self.total_tokens is not None:
            return self.total_tokens
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class CostSignal:
    usd: float


@dataclass(frozen=True)
class ErrorSignal:
    code: str
    message: str
    details: Optional[Dict[str, Any]] = field(default=None, hash=False)


Signal = Union[
    SessionIdSignal,
    TextDelta,
    FinalText,
    ToolUse,
    FileChange,
    UsageSignal,
    CostSignal,
    ErrorSignal,
]
