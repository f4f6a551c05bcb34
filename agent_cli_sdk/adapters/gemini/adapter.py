"""
Gemini CLI adapter.

Handles command building for the Google Gemini CLI.
Event interpretation is in parser.py.
"""

import logging
from typing import Dict, List, Optional

from agent_cli_sdk.adapters.base import BaseCLIAdapter
from agent_cli_sdk.adapters.capabilities import AdapterCapabilities
from agent_cli_sdk.adapters.gemini.parser import GeminiStreamParser
from agent_cli_sdk.adapters.registry import cli_adapter
from agent_cli_sdk.parsing.aggregator import EventRules
from agent_cli_sdk.parsing.signals import Signal
from agent_cli_sdk.types.events import StreamEvent
from agent_cli_sdk.types.options import ExecutionOptions, GeminiOptions

logger = logging.getLogger(__name__)

# Track if we've warned about reasoning effort not being supported
_reasoning_warning_shown = False


@cli_adapter("gemini")
class GeminiAdapter(BaseCLIAdapter):
    """
    Adapter for Google Gemini CLI.

    Command formats:
    - New session: gemini --output-format stream-json --yolo "<prompt>"
    - Resume: gemini --output-format stream-json --yolo --resume <session_id> "<prompt>"

    Note: Gemini CLI doesn't support reasoning effort configuration.
    """

    cli_name = "gemini"
    options_class = GeminiOptions

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
        opts = self._as_gemini(options)
        self._warn_reasoning_not_supported(opts.reasoning_effort)

        output_format = "stream-json" if opts.streaming else "json"
        args = ["--output-format", output_format]

        if opts.model:
            args.extend(["-m", opts.model])

        if opts.approval_mode:
            args.extend(["--approval-mode", opts.approval_mode])
        elif opts.yolo:
            args.append("--yolo")

        for dir_path in opts.include_directories:
            args.extend(["--include-directories", dir_path])

        if existing_session_id:
            args.extend(["--resume", existing_session_id])

        args.extend(opts.extra_args)

        # Prompt goes last
        args.append(prompt)
        return args

    def build_env(self, options: ExecutionOptions) -> Dict[str, str]:
        env = super().build_env(options)
        if options.api_key:
            env["GEMINI_API_KEY"] = options.api_key
        return env

    def event_rules(self) -> EventRules:
        return GeminiStreamParser()

    def interpret(self, event: StreamEvent) -> List[Signal]:
        return GeminiStreamParser().interpret(event)

    def _warn_reasoning_not_supported(self, reasoning_effort: Optional[str]) -> None:
        """Log a warning once if reasoning_effort is set but not 'medium'."""
        global _reasoning_warning_shown
        if reasoning_effort and reasoning_effort != "medium" and not _reasoning_warning_shown:
            logger.warning(
                f"[GEMINI] reasoning_effort='{reasoning_effort}' ignored - "
                "Gemini CLI doesn't support this parameter yet."
            )
            _reasoning_warning_shown = True

    def _as_gemini(self, options: ExecutionOptions) -> GeminiOptions:
        if isinstance(options, GeminiOptions):
            return options
        return self._defaults.merged(options)  # type: ignore[return-value]
