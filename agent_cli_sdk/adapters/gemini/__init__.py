"""Gemini CLI adapter."""

from agent_cli_sdk.adapters.gemini.adapter import GeminiAdapter
from agent_cli_sdk.adapters.gemini.parser import GeminiStreamParser

__all__ = ["GeminiAdapter", "GeminiStreamParser"]
