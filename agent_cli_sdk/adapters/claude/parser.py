"""
Claude stream event interpretation.

Parses events from ``claude -p --output-format stream-json --verbose``:
- {"type": "system", "subtype": "init", "session_id": "...", "model": "..."}
- {"type": "assistant", "message": {"model": "...", "content": [...], "usage": {...}}}
- {"type": "user", "message": {"content": [{"type": "tool_result", ...}]}}
- {"type": "result", "subtype": "success", "result": "...", "usage": {...},
   "total_cost_usd": 0.01, "is_error": false}

Older CLI versions emitted ``message.chunk``, ``turn.completed``,
``tool.started`` and ``file.modified`` events; those are still understood.
"""

import json
from typing import Any, Dict, List

from agent_cli_sdk.adapters.base import as_int, first_string
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

SESSION_ID_FIELDS = ("session_id", "sessionId")

# Tools whose input names the file they change
FILE_EDIT_TOOLS = ("Write", "Edit", "MultiEdit", "NotebookEdit")


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


class ClaudeStreamParser:
    """Maps Claude events onto signals. Stateless."""

    def interpret(self, event: StreamEvent) -> List[Signal]:
        signals: List[Signal] = []
        payload = event.payload

        session_id = first_string(payload, SESSION_ID_FIELDS)
        if session_id:
            signals.append(SessionIdSignal(session_id))

        handler = getattr(self, "_on_" + event.type.replace(".", "_"), None)
        if handler is not None:
            signals.extend(handler(payload))
        return signals

    def _on_assistant(self, payload: Dict[str, Any]) -> List[Signal]:
        message = payload.get("message")
        if not isinstance(message, dict):
            return []

        signals: List[Signal] = []
        content = message.get("content")
        if isinstance(content, str) and content:
            signals.append(TextDelta(content))
        elif isinstance(content, list):
            for block in content:
                if not isinstance(block, dict):
                    continue
                if block.get("type") == "text" and block.get("text"):
                    signals.append(TextDelta(str(block["text"])))
                elif block.get("type") == "tool_use" and block.get("name"):
                    signals.extend(self._tool_use(block))

        usage = message.get("usage")
        if isinstance(usage, dict):
            model = message.get("model")
            signals.append(
                UsageSignal(
                    input_tokens=as_int(usage.get("input_tokens")),
                    output_tokens=as_int(usage.get("output_tokens")),
                    model=model if isinstance(model, str) and model else "unknown",
                )
            )
        return signals

    def _tool_use(self, block: Dict[str, Any]) -> List[Signal]:
        name = str(block["name"])
        tool_input = block.get("input")
        if not isinstance(tool_input, dict):
            tool_input = {}
        signals: List[Signal] = [
            ToolUse(
                name=name,
                description=f"Tool: {name}",
                metadata={"id": block.get("id"), "input": tool_input},
            )
        ]
        if name in FILE_EDIT_TOOLS:
            path = first_string(tool_input, ("file_path", "notebook_path"))
            if path:
                signals.append(FileChange(path))
        return signals

    def _on_result(self, payload: Dict[str, Any]) -> List[Signal]:
        signals: List[Signal] = []
        result = payload.get("result")
        if result:
            signals.append(FinalText(_as_text(result)))

        usage = payload.get("usage")
        if isinstance(usage, dict):
            # Aggregate only; per-model counts come from assistant messages
            signals.append(
                UsageSignal(
                    input_tokens=as_int(usage.get("input_tokens")),
                    output_tokens=as_int(usage.get("output_tokens")),
                )
            )

        cost = payload.get("total_cost_usd")
        if isinstance(cost, (int, float)) and not isinstance(cost, bool):
            signals.append(CostSignal(float(cost)))

        if payload.get("is_error"):
            subtype = payload.get("subtype")
            signals.append(
                ErrorSignal(
                    code=str(subtype) if subtype else "EXECUTION_ERROR",
                    message=_as_text(result) if result else "Claude reported an error",
                )
            )
        return signals

    def _on_error(self, payload: Dict[str, Any]) -> List[Signal]:
        code = payload.get("code")
        message = payload.get("message")
        details = payload.get("details")
        if isinstance(message, dict):
            details = details if isinstance(details, dict) else message
            message = message.get("message")
        return [
            ErrorSignal(
                code=code if isinstance(code, str) and code else "EXECUTION_ERROR",
                message=message if isinstance(message, str) and message else "Execution failed",
                details=details if isinstance(details, dict) else None,
            )
        ]

    # Legacy event names

    def _on_message_chunk(self, payload: Dict[str, Any]) -> List[Signal]:
        content = payload.get("content")
        if not content:
            return []
        return [TextDelta(_as_text(content))]

    def _on_turn_completed(self, payload: Dict[str, Any]) -> List[Signal]:
        message = payload.get("message")
        if not message:
            return []
        return [FinalText(_as_text(message))]

    def _on_tool_started(self, payload: Dict[str, Any]) -> List[Signal]:
        name = first_string(payload, ("toolName", "tool_name", "name"))
        if not name:
            return []
        return [ToolUse(name=name, description=f"Tool: {name}", metadata=dict(payload))]

    def _on_file_modified(self, payload: Dict[str, Any]) -> List[Signal]:
        path = first_string(payload, ("path",))
        return [FileChange(path)] if path else []
