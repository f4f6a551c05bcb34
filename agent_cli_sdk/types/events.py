"""Stream event and live-output types."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class StreamEvent:
    """One JSON object read from a CLI's JSONL stdout.

    The payload is the full decoded object. Events are never mutated after
    parsing; adapters read from them, they do not write to them.
    """

    type: str
    payload: Dict[str, Any] = field(default_factory=dict, compare=True, hash=False)
    timestamp: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.payload)


@dataclass(frozen=True)
class OutputData:
    """Payload delivered to ``on_output`` for each stdout chunk."""

    raw: str
    """The raw chunk as read from the pipe"""

    events: Tuple[StreamEvent, ...] = ()
    """Events completed by this chunk"""

    text: Optional[str] = None
    """Text extracted from this chunk's events, if any"""

    accumulated: str = ""
    """All text extracted so far during this execution"""
