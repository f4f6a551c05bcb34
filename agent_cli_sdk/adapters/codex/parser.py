"""
Codex stream event interpretation.

Expected format from ``codex exec --json``: JSONL
- {"type": "thread.started", "thread_id": "..."}
- {"type": "turn.started"}
- {"type": "item.completed", "item": {"type": "reasoning|command_execution|agent_message|...", ...}}
- {"type": "turn.completed", "usage": {"input_tokens": 10, "output_tokens": 5}}
- {"type": "turn.failed", "error": {"message": "..."}}

Note: Codex uses thread_id, NOT session_id.
"""

from typing import Any, Dict, List

from agent_cli_sdk.adapters.base import as_int, first_string
from agent_cli_sdk.parsing.signals import (
    ErrorSignal,
    FileChange,
    FinalText,
    SessionIdSignal,
    Signal,
    ToolUse,
    UsageSignal,
)
from agent_cli_sdk.types.events import StreamEvent

SESSION_ID_FIELDS = ("thread_id", "session_id")


class CodexStreamParser:
    """
    Maps Codex events onto signals. Stateless.

    Codex emits whole items rather than deltas, so the last completed
    agent_message is the canonical output.
    """

    def interpret(self, event: StreamEvent) -> List[Signal]:
        signals: List[Signal] = []
        payload = event.payload

        thread_id = first_string(payload, SESSION_ID_FIELDS)
        if thread_id:
            signals.append(SessionIdSignal(thread_id))

        if event.type == "item.completed":
            item = payload.get("item")
            if isinstance(item, dict):
                signals.extend(self._item_signals(item))

        elif event.type == "turn.completed":
            usage = payload.get("usage")
            if isinstance(usage, dict):
                total = usage.get("total_tokens")
                signals.append(
                    UsageSignal(
                        input_tokens=as_int(usage.get("input_tokens")),
                        output_tokens=as_int(usage.get("output_tokens")),
                        total_tokens=as_int(total) if total is not None else None,
                    )
                )

        elif event.type == "error":
            signals.append(
                ErrorSignal(
                    code="CODEX_ERROR",
                    message=first_string(payload, ("message",)) or "Codex reported an error",
                )
            )

        elif event.type == "turn.failed":
            error = payload.get("error")
            message = None
            if isinstance(error, dict):
                message = first_string(error, ("message",))
            signals.append(
                ErrorSignal(
                    code="TURN_FAILED",
                    message=message or "Codex turn failed",
                    details=error if isinstance(error, dict) else None,
                )
            )

        # Legacy event names
        elif event.type in ("tool.started", "tool_use"):
            name = first_string(payload, ("toolName", "name"))
            if name:
                signals.append(
                    ToolUse(name=name, description=f"Tool: {name}", metadata=dict(payload))
                )

        elif event.type in ("file.modified", "file.written"):
            path = first_string(payload, ("path", "file"))
            if path:
                signals.append(FileChange(path))

        return signals

    def _item_signals(self, item: Dict[str, Any]) -> List[Signal]:
        item_type = item.get("type") or item.get("item_type")

        if item_type in ("agent_message", "assistant_message"):
            text = item.get("text")
            if isinstance(text, str) and text:
                return [FinalText(text)]
            return []

        if item_type == "command_execution":
            command = item.get("command")
            return [
                ToolUse(
                    name="shell",
                    description=f"Command: {command}" if command else "Command",
                    metadata={
                        "command": command,
                        "exit_code": item.get("exit_code"),
                        "status": item.get("status"),
                    },
                )
            ]

        if item_type == "mcp_tool_call":
            tool = first_string(item, ("tool", "name")) or "mcp_tool_call"
            server = item.get("server")
            name = f"{server}.{tool}" if isinstance(server, str) and server else tool
            return [
                ToolUse(
                    name=name,
                    description=f"MCP tool: {name}",
                    metadata={"server": server, "tool": tool, "status": item.get("status")},
                )
            ]

        if item_type == "web_search":
            query = item.get("query")
            return [
                ToolUse(
                    name="web_search",
                    description=f"Web search: {query}" if query else "Web search",
                    metadata={"query": query},
                )
            ]

        if item_type == "file_change":
            changes = item.get("changes")
            if not isinstance(changes, list):
                return []
            return [
                FileChange(change["path"])
                for change in changes
                if isinstance(change, dict) and isinstance(change.get("path"), str)
            ]

        if item_type == "error":
            return [
                ErrorSignal(
                    code="CODEX_ERROR",
                    message=first_string(item, ("message",)) or "Codex reported an error",
                )
            ]

        return []
