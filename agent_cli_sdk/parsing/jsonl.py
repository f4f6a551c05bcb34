"""
StreamEventParser: JSONL text to ordered StreamEvents.

Tolerant by construction: a line that is not valid JSON is skipped, never
raised. The same text always parses to the same events.
"""

import json
import logging
from datetime import datetime
from typing import Any, List, Optional

from agent_cli_sdk.types.events import StreamEvent

logger = logging.getLogger(__name__)

UNKNOWN_EVENT_TYPE = "unknown"


class StreamEventParser:
    """
    Parses newline-delimited JSON into StreamEvents.

    Use ``parse()`` on complete output, or ``feed()``/``flush()`` on chunks
    as they arrive from a pipe. Incremental parsing buffers the trailing
    partial line until its newline (or ``flush()``) arrives.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def parse(self, raw_text: str) -> List[StreamEvent]:
        """Parse complete output. Stateless with respect to ``feed()``."""
        events: List[StreamEvent] = []
        if not raw_text:
            return events
        for line in raw_text.splitlines():
            events.extend(self.parse_line(line))
        if not events and "\n" in raw_text.strip():
            # A single pretty-printed document (Gemini's --output-format json)
            events = self.parse_line(raw_text.replace("\n", " "))
        return events

    def feed(self, chunk: str) -> List[StreamEvent]:
        """Consume a chunk and return events for every line it completed."""
        self._buffer += chunk
        if "\n" not in self._buffer:
            return []
        complete, self._buffer = self._buffer.rsplit("\n", 1)
        return self.parse(complete)

    def flush(self) -> List[StreamEvent]:
        """Parse whatever partial line remains buffered."""
        remaining, self._buffer = self._buffer, ""
        return self.parse(remaining)

    @classmethod
    def parse_line(cls, line: str) -> List[StreamEvent]:
        line = line.strip()
        if not line:
            return []
        try:
            value = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Skipping non-JSON line: {line[:120]}")
            return []

        # Claude's --output-format json emits a single array of events
        if isinstance(value, list):
            return [cls._to_event(item) for item in value if isinstance(item, dict)]
        if isinstance(value, dict):
            return [cls._to_event(value)]
        return []

    @staticmethod
    def _to_event(obj: dict) -> StreamEvent:
        event_type = obj.get("type")
        if not isinstance(event_type, str) or not event_type:
            event_type = UNKNOWN_EVENT_TYPE
        return StreamEvent(
            type=event_type, payload=obj, timestamp=_payload_timestamp(obj)
        )


def _payload_timestamp(obj: dict) -> Optional[float]:
    value: Any = obj.get("timestamp")
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
        except ValueError:
            return None
    return None
