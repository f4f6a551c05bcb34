"""Subprocess execution for CLI agents."""

from agent_cli_sdk.cli_agents.executor import ProcessResult, ProcessRunner

__all__ = ["ProcessResult", "ProcessRunner"]
