"""Per-call execution options.

Options are immutable. An adapter holds a defaults object of its own options
class; each call's explicitly-set fields are merged over it into a new object
with ``merged()``. Nothing is ever mutated in place.
"""

import logging
from typing import Any, Callable, Dict, Literal, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agent_cli_sdk.types.events import OutputData, StreamEvent

logger = logging.getLogger(__name__)

ReasoningEffort = Literal["low", "medium", "high", "xhigh"]

OptionsT = TypeVar("OptionsT", bound="ExecutionOptions")


class ExecutionOptions(BaseModel):
    """Options understood by every adapter."""

    model_config = ConfigDict(
        frozen=True, arbitrary_types_allowed=True, extra="forbid"
    )

    model: Optional[str] = Field(None, description="Model name passed to the CLI")
    working_dir: Optional[str] = Field(None, description="Working directory for the process")
    timeout_ms: Optional[int] = Field(None, gt=0, description="Total deadline")
    idle_timeout_ms: Optional[int] = Field(
        None, gt=0, description="Kill the process if silent this long after first output"
    )
    env: Dict[str, str] = Field(
        default_factory=dict, description="Extra environment, merged over the inherited one"
    )
    images: Tuple[str, ...] = Field((), description="Image file paths to attach")
    response_schema: Any = Field(
        None,
        description="True, a JSON Schema dict, or a pydantic model class",
    )
    on_output: Optional[Callable[[OutputData], None]] = None
    on_event: Optional[Callable[[StreamEvent], None]] = None
    on_stderr: Optional[Callable[[str], None]] = None
    log_path: Optional[str] = Field(None, description="Directory for input/output logs")
    session_id: Optional[str] = Field(
        None, description="Existing backend session to resume"
    )
    reasoning_effort: Optional[ReasoningEffort] = None
    api_key: Optional[str] = Field(None, repr=False)
    extra_args: Tuple[str, ...] = Field((), description="Raw flags appended before the prompt")
    verbose: bool = False

    @field_validator("response_schema")
    @classmethod
    def validate_response_schema(cls, v: Any) -> Any:
        if v is None or v is False:
            return None
        if v is True or isinstance(v, dict):
            return v
        if isinstance(v, type) and issubclass(v, BaseModel):
            return v
        raise ValueError(
            "response_schema must be True, a JSON Schema dict, or a pydantic model class"
        )

    def merged(self: OptionsT, overrides: Optional["ExecutionOptions"]) -> OptionsT:
        """Return a copy of ``self`` with the fields explicitly set on ``overrides``."""
        if overrides is None:
            return self
        own_fields = type(self).model_fields
        update: Dict[str, Any] = {}
        for name in overrides.model_fields_set:
            if name in own_fields:
                update[name] = getattr(overrides, name)
            else:
                logger.debug(
                    f"Ignoring option '{name}': not understood by {type(self).__name__}"
                )
        if not update:
            return self
        return self.model_copy(update=update)


class ClaudeOptions(ExecutionOptions):
    """Options specific to Claude Code."""

    new_session_id: Optional[str] = Field(
        None, description="Start a new conversation with this caller-chosen id"
    )
    continue_session: bool = Field(False, description="Continue the most recent conversation")
    permission_mode: Optional[
        Literal["default", "acceptEdits", "bypassPermissions", "plan"]
    ] = None
    dangerously_skip_permissions: bool = True
    streaming: bool = Field(True, description="Use stream-json output")
    allowed_tools: Tuple[str, ...] = ()
    disallowed_tools: Tuple[str, ...] = ()
    add_dirs: Tuple[str, ...] = ()
    append_system_prompt: Optional[str] = None
    oauth_token: Optional[str] = Field(None, repr=False)


class CodexOptions(ExecutionOptions):
    """Options specific to the Codex CLI."""

    sandbox: Optional[Literal["read-only", "workspace-write", "danger-full-access"]] = None
    full_auto: bool = True
    dangerously_bypass_approvals_and_sandbox: bool = False
    search: bool = False
    skip_git_repo_check: bool = False
    output_schema: Optional[str] = Field(None, description="Path to a JSON Schema file")
    color: Optional[Literal["always", "never", "auto"]] = None
    json_output: bool = True
    include_plan_tool: bool = False
    output_last_message: Optional[str] = Field(
        None, description="File to write the last agent message to"
    )
    config_overrides: Dict[str, Any] = Field(default_factory=dict)
    profile: Optional[str] = None
    oss: bool = False


class GeminiOptions(ExecutionOptions):
    """Options specific to the Gemini CLI."""

    streaming: bool = Field(True, description="Use stream-json output")
    yolo: bool = True
    approval_mode: Optional[Literal["default", "auto_edit", "yolo"]] = None
    include_directories: Tuple[str, ...] = ()
