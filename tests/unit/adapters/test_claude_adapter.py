"""
Unit Tests: ClaudeAdapter argument building, environment and event rules.

Tests are pure - no subprocess is spawned.
"""

import pytest


def _adapter(**kwargs):
    from agent_cli_sdk.adapters.claude import ClaudeAdapter

    return ClaudeAdapter(cli_path="claude", **kwargs)


class TestBuildInvocationArgs:
    """Argument list construction."""

    def test_default_new_session(self):
        """A new conversation uses print mode and stream-json."""
        adapter = _adapter()

        args = adapter.build_invocation_args("Hello", adapter.defaults)

        assert args == [
            "-p",
            "--permission-mode",
            "acceptEdits",
            "--output-format",
            "stream-json",
            "--verbose",
            "Hello",
        ]

    def test_resume_uses_resume_flag(self):
        adapter = _adapter()

        args = adapter.build_invocation_args("Next", adapter.defaults, "sess-1")

        assert args[args.index("--resume") + 1] == "sess-1"
        assert "--session-id" not in args
        assert args[-1] == "Next"

    def test_caller_chosen_session_id(self):
        adapter = _adapter()
        opts = adapter.resolve_options(new_session_id="my-id")

        args = adapter.build_invocation_args("Hi", opts)

        assert args[args.index("--session-id") + 1] == "my-id"
        assert "--resume" not in args

    def test_resume_takes_precedence(self):
        adapter = _adapter()
        opts = adapter.resolve_options(new_session_id="my-id", continue_session=True)

        args = adapter.build_invocation_args("Hi", opts, "existing")

        assert "--resume" in args
        assert "--session-id" not in args
        assert "--continue" not in args

    def test_continue_flag(self):
        adapter = _adapter()
        args = adapter.build_invocation_args(
            "Hi", adapter.resolve_options(continue_session=True)
        )

        assert "--continue" in args

    def test_all_options(self):
        """Every option maps to its flag, prompt last."""
        adapter = _adapter()
        opts = adapter.resolve_options(
            model="sonnet",
            permission_mode="plan",
            streaming=False,
            allowed_tools=("Read", "Grep"),
            disallowed_tools=("Bash",),
            add_dirs=("/src", "/docs"),
            append_system_prompt="Be brief",
            extra_args=("--max-turns", "3"),
        )

        args = adapter.build_invocation_args("Task", opts)

        assert args == [
            "-p",
            "--model",
            "sonnet",
            "--permission-mode",
            "plan",
            "--output-format",
            "json",
            "--allowed-tools",
            "Read,Grep",
            "--disallowed-tools",
            "Bash",
            "--add-dir",
            "/src",
            "--add-dir",
            "/docs",
            "--append-system-prompt",
            "Be brief",
            "--max-turns",
            "3",
            "Task",
        ]

    def test_permissions_not_skipped_when_disabled(self):
        adapter = _adapter()
        opts = adapter.resolve_options(dangerously_skip_permissions=False)

        assert "--permission-mode" not in adapter.build_invocation_args("x", opts)

    def test_builder_is_pure(self):
        """Building twice from the same options gives the same args."""
        adapter = _adapter()
        opts = adapter.resolve_options(model="opus", add_dirs=("/a",))

        assert adapter.build_invocation_args("p", opts) == adapter.build_invocation_args("p", opts)


class TestBuildEnv:
    """Environment variables for the Claude process."""

    def test_api_key_and_oauth_token(self):
        adapter = _adapter()
        opts = adapter.resolve_options(api_key="sk-test", oauth_token="oauth-test")

        env = adapter.build_env(opts)

        assert env["ANTHROPIC_API_KEY"] == "sk-test"
        assert env["CLAUDE_CODE_OAUTH_TOKEN"] == "oauth-test"

    @pytest.mark.parametrize(
        "effort,expected",
        [("low", "16000"), ("high", "63999"), ("xhigh", "127999")],
    )
    def test_reasoning_effort_sets_thinking_tokens(self, effort, expected):
        adapter = _adapter()

        env = adapter.build_env(adapter.resolve_options(reasoning_effort=effort))

        assert env["MAX_THINKING_TOKENS"] == expected

    def test_medium_effort_uses_default(self):
        adapter = _adapter()

        env = adapter.build_env(adapter.resolve_options(reasoning_effort="medium"))

        assert "MAX_THINKING_TOKENS" not in env

    def test_call_env_included(self):
        adapter = _adapter()

        env = adapter.build_env(adapter.resolve_options(env={"FOO": "bar"}))

        assert env == {"FOO": "bar"}


class TestInterpret:
    """Claude event rules."""

    def test_init_event_session_id(self):
        from agent_cli_sdk.parsing.signals import SessionIdSignal
        from agent_cli_sdk.types.events import StreamEvent

        signals = _adapter().interpret(
            StreamEvent("system", {"type": "system", "subtype": "init", "session_id": "abc"})
        )

        assert signals == [SessionIdSignal("abc")]

    def test_assistant_usage_is_per_model(self):
        from agent_cli_sdk.parsing.signals import TextDelta, UsageSignal
        from agent_cli_sdk.types.events import StreamEvent

        payload = {
            "type": "assistant",
            "message": {
                "model": "claude-sonnet",
                "content": [{"type": "text", "text": "Hi"}],
                "usage": {"input_tokens": 5, "output_tokens": 2},
            },
        }

        signals = _adapter().interpret(StreamEvent("assistant", payload))

        assert TextDelta("Hi") in signals
        assert UsageSignal(input_tokens=5, output_tokens=2, model="claude-sonnet") in signals

    def test_result_usage_is_aggregate_only(self):
        from agent_cli_sdk.parsing.signals import UsageSignal
        from agent_cli_sdk.types.events import StreamEvent

        signals = _adapter().interpret(
            StreamEvent("result", {"type": "result", "usage": {"input_tokens": 1, "output_tokens": 1}})
        )

        usage = [s for s in signals if isinstance(s, UsageSignal)]
        assert usage == [UsageSignal(input_tokens=1, output_tokens=1, model=None)]

    def test_notebook_edit_records_file(self):
        from agent_cli_sdk.parsing.signals import FileChange
        from agent_cli_sdk.types.events import StreamEvent

        payload = {
            "type": "assistant",
            "message": {
                "content": [
                    {
                        "type": "tool_use",
                        "name": "NotebookEdit",
                        "input": {"notebook_path": "/nb.ipynb"},
                    }
                ]
            },
        }

        signals = _adapter().interpret(StreamEvent("assistant", payload))

        assert FileChange("/nb.ipynb") in signals

    def test_final_text_not_live(self):
        """Claude's result repeats streamed text, so it is not live output."""
        assert _adapter().final_text_is_live is False


class TestCapabilities:
    def test_capabilities(self):
        caps = _adapter().get_capabilities()

        assert caps.streaming and caps.session_management and caps.tool_calling
        assert caps.multi_modal is False

    @pytest.mark.asyncio
    async def test_images_rejected(self, fake_runner):
        """Images fail fast on a non-multi-modal adapter."""
        from agent_cli_sdk.errors import CapabilityError

        adapter = _adapter(runner=fake_runner)

        with pytest.raises(CapabilityError) as exc_info:
            await adapter.execute("Describe", images=("/tmp/cat.png",))

        assert exc_info.value.capability == "multi_modal"
        assert fake_runner.calls == []
