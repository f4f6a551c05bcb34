"""
Claude Code adapter.

Handles command building for Anthropic's Claude Code CLI.
Event interpretation is in parser.py.
"""

import logging
from typing import Dict, List, Optional

from agent_cli_sdk.adapters.base import BaseCLIAdapter
from agent_cli_sdk.adapters.capabilities import AdapterCapabilities
from agent_cli_sdk.adapters.claude.parser import ClaudeStreamParser
from agent_cli_sdk.adapters.registry import cli_adapter
from agent_cli_sdk.parsing.signals import Signal
from agent_cli_sdk.types.events import StreamEvent
from agent_cli_sdk.types.options import ClaudeOptions, ExecutionOptions

logger = logging.getLogger(__name__)

# Mapping from reasoning effort levels to MAX_THINKING_TOKENS values
# Based on Claude Code's default of 31,999 tokens
REASONING_EFFORT_TO_TOKENS: Dict[str, int] = {
    "low": 16_000,
    "high": 63_999,  # 2x default
    "xhigh": 127_999,  # 4x default
}


@cli_adapter("claude")
class ClaudeAdapter(BaseCLIAdapter):
    """
    Adapter for Anthropic Claude Code CLI.

    Command formats:
    - New session: claude -p --output-format stream-json --verbose "<prompt>"
    - Resume: claude -p --resume <session_id> --output-format stream-json --verbose "<prompt>"

    Reasoning effort is controlled via the MAX_THINKING_TOKENS environment
    variable rather than a flag.
    """

    cli_name = "claude"
    options_class = ClaudeOptions
    # The result event repeats the text already streamed by assistant messages
    final_text_is_live = False

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._parser = ClaudeStreamParser()

    def get_capabilities(self) -> AdapterCapabilities:
        return AdapterCapabilities(
            streaming=True,
            session_management=True,
            tool_calling=True,
            multi_modal=False,
        )

    def build_invocation_args(
        self,
        prompt: str,
        options: ExecutionOptions,
        existing_session_id: Optional[str] = None,
    ) -> List[str]:
        opts = self._as_claude(options)
        args = ["-p"]

        if opts.model:
            args.extend(["--model", opts.model])

        if existing_session_id:
            args.extend(["--resume", existing_session_id])
        elif opts.new_session_id:
            args.extend(["--session-id", opts.new_session_id])
        elif opts.continue_session:
            args.append("--continue")

        if opts.permission_mode:
            args.extend(["--permission-mode", opts.permission_mode])
        elif opts.dangerously_skip_permissions:
            args.extend(["--permission-mode", "acceptEdits"])

        # stream-json requires --verbose in print mode
        if opts.streaming:
            args.extend(["--output-format", "stream-json", "--verbose"])
        else:
            args.extend(["--output-format", "json"])

        if opts.allowed_tools:
            args.extend(["--allowed-tools", ",".join(opts.allowed_tools)])
        if opts.disallowed_tools:
            args.extend(["--disallowed-tools", ",".join(opts.disallowed_tools)])
        for dir_path in opts.add_dirs:
            args.extend(["--add-dir", dir_path])
        if opts.append_system_prompt:
            args.extend(["--append-system-prompt", opts.append_system_prompt])

        args.extend(opts.extra_args)

        # Prompt as positional argument
        args.append(prompt)
        return args

    def build_env(self, options: ExecutionOptions) -> Dict[str, str]:
        opts = self._as_claude(options)
        env = super().build_env(opts)
        if opts.api_key:
            env["ANTHROPIC_API_KEY"] = opts.api_key
        if opts.oauth_token:
            env["CLAUDE_CODE_OAUTH_TOKEN"] = opts.oauth_token
        env.update(self.get_reasoning_env_vars(opts.reasoning_effort))
        return env

    def get_reasoning_env_vars(self, reasoning_effort: Optional[str] = None) -> Dict[str, str]:
        """Get environment variables for reasoning effort.

        Only set if different from the default (medium).
        """
        if not reasoning_effort or reasoning_effort == "medium":
            return {}

        tokens = REASONING_EFFORT_TO_TOKENS.get(reasoning_effort)
        if tokens is None:
            logger.warning(
                f"[CLAUDE] Unknown reasoning effort '{reasoning_effort}', using default"
            )
            return {}

        logger.debug(f"[CLAUDE] Setting MAX_THINKING_TOKENS={tokens} for {reasoning_effort}")
        return {"MAX_THINKING_TOKENS": str(tokens)}

    def interpret(self, event: StreamEvent) -> List[Signal]:
        return self._parser.interpret(event)

    def _as_claude(self, options: ExecutionOptions) -> ClaudeOptions:
        if isinstance(options, ClaudeOptions):
            return options
        return self._defaults.merged(options)  # type: ignore[return-value]
