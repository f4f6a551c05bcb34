"""Logging setup and execution logs."""

from .execution_log import ExecutionLogWriter, session_message_log_path
from .setup import setup_logging, shutdown_logging

__all__ = [
    "ExecutionLogWriter",
    "session_message_log_path",
    "setup_logging",
    "shutdown_logging",
]
