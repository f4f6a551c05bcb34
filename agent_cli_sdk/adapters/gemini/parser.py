"""
Gemini stream event interpretation.

Expected format from ``gemini --output-format stream-json``: JSONL
- {"type": "init", "session_id": "...", "model": "gemini-2.5-pro"}
- {"type": "message", "role": "assistant", "content": "...", "delta": true}
- {"type": "tool_use", "tool_name": "read_file", "tool_id": "...", "parameters": {...}}
- {"type": "tool_result", "tool_id": "...", "status": "success"}
- {"type": "error", "severity": "error", "message": "..."}
- {"type": "result", "status": "success", "stats": {"input_tokens": 10, "output_tokens": 5}}

With ``--output-format json`` the CLI prints a single object instead:
- {"session_id": "...", "response": "...", "stats": {...}}
"""

from typing import Any, Dict, List, Optional

from agent_cli_sdk.adapters.base import as_int, first_string
from agent_cli_sdk.parsing.signals import (
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

SESSION_ID_FIELDS = ("session_id",)

FILE_EDIT_TOOLS = ("write_file", "replace", "edit")


class GeminiStreamParser:
    """
    Maps Gemini events onto signals.

    Remembers the model announced by ``init`` so result stats can be
    attributed to it; use one instance per execution.
    """

    def __init__(self) -> None:
        self._model: Optional[str] = None

    def interpret(self, event: StreamEvent) -> List[Signal]:
        signals: List[Signal] = []
        payload = event.payload

        session_id = first_string(payload, SESSION_ID_FIELDS)
        if session_id:
            signals.append(SessionIdSignal(session_id))

        # Single-object json mode carries the whole answer
        response = payload.get("response")
        if isinstance(response, str):
            signals.append(FinalText(response))
            signals.extend(self._stats_signals(payload.get("stats")))
            return signals

        if event.type == "init":
            model = payload.get("model")
            if isinstance(model, str) and model:
                self._model = model

        elif event.type == "message":
            content = payload.get("content")
            if payload.get("role") == "assistant" and isinstance(content, str) and content:
                signals.append(TextDelta(content))

        elif event.type == "tool_use":
            signals.extend(self._tool_signals(payload))

        elif event.type == "error":
            if payload.get("severity", "error") == "error":
                signals.append(
                    ErrorSignal(
                        code="GEMINI_ERROR",
                        message=first_string(payload, ("message",)) or "Gemini reported an error",
                    )
                )

        elif event.type == "result":
            signals.extend(self._stats_signals(payload.get("stats")))
            if payload.get("status") == "error":
                error = payload.get("error")
                message = None
                if isinstance(error, dict):
                    message = first_string(error, ("message",))
                signals.append(
                    ErrorSignal(
                        code="GEMINI_ERROR",
                        message=message or "Gemini run failed",
                        details=error if isinstance(error, dict) else None,
                    )
                )

        return signals

    def _tool_signals(self, payload: Dict[str, Any]) -> List[Signal]:
        name = first_string(payload, ("tool_name", "name"))
        if not name:
            return []
        parameters = payload.get("parameters")
        if not isinstance(parameters, dict):
            parameters = {}
        signals: List[Signal] = [
            ToolUse(
                name=name,
                description=f"Tool: {name}",
                metadata={"id": payload.get("tool_id"), "parameters": parameters},
            )
        ]
        if name in FILE_EDIT_TOOLS:
            path = first_string(parameters, ("file_path", "absolute_path", "path"))
            if path:
                signals.append(FileChange(path))
        return signals

    def _stats_signals(self, stats: Any) -> List[Signal]:
        if not isinstance(stats, dict):
            return []
        if "input_tokens" not in stats and "output_tokens" not in stats:
            return []
        total = stats.get("total_tokens")
        return [
            UsageSignal(
                input_tokens=as_int(stats.get("input_tokens")),
                output_tokens=as_int(stats.get("output_tokens")),
                total_tokens=as_int(total) if total is not None else None,
                model=self._model,
            )
        ]
