"""Error hierarchy for agent-cli-sdk.

Every error raised by the SDK derives from AgentSDKError and carries an
ErrorCategory, mirroring the categorized adapter errors used elsewhere.

Thrown errors mean the CLI could not be run at all. A CLI that ran but
reported failure is surfaced in-band through ExecutionResponse.error instead.
"""

from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categories of errors so callers can decide how to react."""

    SPAWN = auto()  # Executable missing or OS refused to start it
    TIMEOUT = auto()  # Deadline or idle timeout exceeded
    EXECUTION = auto()  # Abnormal exit with no more specific cause
    PARSING = auto()  # Structured output extraction/validation failed
    VALIDATION = auto()  # Malformed caller input
    CAPABILITY = auto()  # Operation unsupported by the active adapter
    SESSION = auto()  # Session misuse (aborted, concurrent send)


class AgentSDKError(Exception):
    """Base exception for all SDK errors."""

    category: ErrorCategory = ErrorCategory.EXECUTION

    def __init__(self, message: str, category: Optional[ErrorCategory] = None):
        super().__init__(message)
        if category is not None:
            self.category = category
        self.message = message


class ValidationError(AgentSDKError):
    """Raised when caller input is malformed (empty prompt, bad option)."""

    category = ErrorCategory.VALIDATION


class ExecutionError(AgentSDKError):
    """Raised when a CLI process fails to run to completion."""

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        stderr: str = "",
        category: Optional[ErrorCategory] = None,
    ):
        super().__init__(message, category)
        self.exit_code = exit_code
        self.stderr = stderr


class SpawnError(ExecutionError):
    """Raised when the executable cannot be started."""

    category = ErrorCategory.SPAWN

    def __init__(self, executable: str, message: str, stderr: str = ""):
        super().__init__(message, exit_code=None, stderr=stderr)
        self.executable = executable


class ExecutionTimeoutError(AgentSDKError, TimeoutError):
    """Raised when a CLI process exceeds its deadline and is terminated."""

    category = ErrorCategory.TIMEOUT

    def __init__(
        self,
        timeout_ms: int,
        message: Optional[str] = None,
        stdout: str = "",
        stderr: str = "",
        idle: bool = False,
    ):
        if message is None:
            kind = "idle timeout" if idle else "timeout"
            message = f"Process exceeded {kind} of {timeout_ms}ms"
        super().__init__(message)
        self.timeout_ms = timeout_ms
        self.stdout = stdout
        self.stderr = stderr
        self.idle = idle


class ParseError(AgentSDKError):
    """Raised when structured output cannot be extracted or validated."""

    category = ErrorCategory.PARSING

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw


class CapabilityError(AgentSDKError):
    """Raised when an operation needs a capability the adapter lacks."""

    category = ErrorCategory.CAPABILITY

    def __init__(self, capability: str, adapter: str, message: Optional[str] = None):
        if message is None:
            message = f"Adapter '{adapter}' does not support {capability}"
        super().__init__(message)
        self.capability = capability
        self.adapter = adapter


class SessionError(AgentSDKError):
    """Raised when a session operation is not allowed in its current state."""

    category = ErrorCategory.SESSION

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message)
        self.session_id = session_id


class SessionAbortedError(SessionError):
    """Raised when a send is attempted on, or interrupted by, an aborted session."""
