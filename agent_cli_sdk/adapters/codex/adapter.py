"""
Codex CLI adapter.

Handles command building for the OpenAI Codex CLI.
Event interpretation is in parser.py.
"""

import json
import logging
from typing import Dict, List, Optional

from agent_cli_sdk.adapters.base import BaseCLIAdapter
from agent_cli_sdk.adapters.capabilities import AdapterCapabilities
from agent_cli_sdk.adapters.codex.parser import CodexStreamParser
from agent_cli_sdk.adapters.registry import cli_adapter
from agent_cli_sdk.parsing.signals import Signal
from agent_cli_sdk.types.events import StreamEvent
from agent_cli_sdk.types.options import CodexOptions, ExecutionOptions

logger = logging.getLogger(__name__)


@cli_adapter("codex")
class CodexAdapter(BaseCLIAdapter):
    """
    Adapter for OpenAI Codex CLI.

    Command formats:
    - New session: codex exec --full-auto --json "<prompt>"
    - Resume: codex exec --full-auto --json resume <thread_id> "<prompt>"

    Note: Codex uses a positional 'resume' subcommand, NOT a --resume flag,
    and all flags must precede it.
    """

    cli_name = "codex"
    options_class = CodexOptions

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._parser = CodexStreamParser()

    def get_capabilities(self) -> AdapterCapabilities:
        return AdapterCapabilities(
            streaming=True,
            session_management=True,
            tool_calling=True,
            multi_modal=True,
        )

    def build_invocation_args(
        self,
        prompt: str,
        options: ExecutionOptions,
        existing_session_id: Optional[str] = None,
    ) -> List[str]:
        opts = self._as_codex(options)
        args = ["exec"]

        if opts.model:
            args.extend(["-m", opts.model])
        if opts.sandbox:
            args.extend(["-s", opts.sandbox])

        if opts.full_auto:
            args.append("--full-auto")
        if opts.dangerously_bypass_approvals_and_sandbox:
            args.append("--dangerously-bypass-approvals-and-sandbox")

        if opts.working_dir:
            args.extend(["-C", opts.working_dir])
        for image in opts.images:
            args.extend(["-i", image])
        if opts.search:
            args.append("--search")
        if opts.skip_git_repo_check:
            args.append("--skip-git-repo-check")
        if opts.output_schema:
            args.extend(["--output-schema", opts.output_schema])
        if opts.color:
            args.extend(["--color", opts.color])
        if opts.json_output:
            args.append("--json")
        if opts.include_plan_tool:
            args.append("--include-plan-tool")
        if opts.output_last_message:
            args.extend(["-o", opts.output_last_message])

        for key, value in self._config_overrides(opts).items():
            args.extend(["-c", f"{key}={json.dumps(value)}"])

        if opts.profile:
            args.extend(["-p", opts.profile])
        if opts.oss:
            args.append("--oss")

        args.extend(opts.extra_args)

        if existing_session_id:
            args.extend(["resume", existing_session_id])

        # Prompt goes last
        args.append(prompt)
        return args

    def _config_overrides(self, opts: CodexOptions) -> Dict[str, object]:
        overrides = dict(opts.config_overrides)
        # Codex supports: low, medium, high, xhigh
        if opts.reasoning_effort and "model_reasoning_effort" not in overrides:
            overrides["model_reasoning_effort"] = opts.reasoning_effort
            logger.debug(f"[CODEX] Setting reasoning effort: {opts.reasoning_effort}")
        return overrides

    def build_env(self, options: ExecutionOptions) -> Dict[str, str]:
        env = super().build_env(options)
        if options.api_key:
            env["CODEX_API_KEY"] = options.api_key
        return env

    def interpret(self, event: StreamEvent) -> List[Signal]:
        return self._parser.interpret(event)

    def _as_codex(self, options: ExecutionOptions) -> CodexOptions:
        if isinstance(options, CodexOptions):
            return options
        return self._defaults.merged(options)  # type: ignore[return-value]
