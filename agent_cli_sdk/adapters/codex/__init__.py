"""Codex CLI adapter."""

from agent_cli_sdk.adapters.codex.adapter import CodexAdapter
from agent_cli_sdk.adapters.codex.parser import CodexStreamParser

__all__ = ["CodexAdapter", "CodexStreamParser"]
