"""
Backend CLI adapters.

Importing this package registers every built-in adapter with the registry.
"""

from agent_cli_sdk.adapters.base import BaseCLIAdapter
from agent_cli_sdk.adapters.capabilities import AdapterCapabilities
from agent_cli_sdk.adapters.claude import ClaudeAdapter
from agent_cli_sdk.adapters.codex import CodexAdapter
from agent_cli_sdk.adapters.gemini import GeminiAdapter
from agent_cli_sdk.adapters.registry import (
    cli_adapter,
    create_adapter,
    get_adapter_class,
    list_adapters,
)

__all__ = [
    "AdapterCapabilities",
    "BaseCLIAdapter",
    "ClaudeAdapter",
    "CodexAdapter",
    "GeminiAdapter",
    "cli_adapter",
    "create_adapter",
    "get_adapter_class",
    "list_adapters",
]
