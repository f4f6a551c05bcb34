"""Claude Code adapter."""

from agent_cli_sdk.adapters.claude.adapter import ClaudeAdapter
from agent_cli_sdk.adapters.claude.parser import ClaudeStreamParser

__all__ = ["ClaudeAdapter", "ClaudeStreamParser"]
