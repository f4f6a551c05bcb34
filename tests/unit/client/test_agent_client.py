"""
Unit Tests: AgentClient and the active session registry.
"""

import asyncio
import json
from typing import List, Optional

import pytest


def _result_line(session_id: str) -> str:
    return json.dumps({"type": "result", "session_id": session_id, "result": "ok"}) + "\n"


def _client(fake_runner, **kwargs):
    from agent_cli_sdk.adapters.claude import ClaudeAdapter
    from agent_cli_sdk.client.agent_client import AgentClient

    return AgentClient(ClaudeAdapter(cli_path="claude", runner=fake_runner), **kwargs)


class TestSessionRegistration:
    """Sessions become visible once a successful send binds a session id."""

    @pytest.mark.asyncio
    async def test_registered_after_first_success(self, fake_runner, scripted_run):
        fake_runner.script(scripted_run(stdout=_result_line("s-1")))
        client = _client(fake_runner)
        session = client.create_session()

        assert client.list_active_sessions() == []

        await session.send("hi")

        assert client.get_session("s-1") is session
        infos = client.list_active_sessions()
        assert len(infos) == 1
        assert infos[0].session_id == "s-1"
        assert infos[0].message_count == 1
        assert infos[0].adapter == "claude"
        assert infos[0].last_message_at is not None

    @pytest.mark.asyncio
    async def test_registered_when_id_arrives_on_later_turn(self, fake_runner, scripted_run):
        """A first turn that fails in-band does not prevent later registration."""
        fake_runner.script(
            scripted_run(stdout="", exit_code=1),
            scripted_run(stdout=_result_line("s-9")),
        )
        client = _client(fake_runner)
        session = client.create_session()

        first = await session.send("one")
        assert not first.is_success
        assert client.list_active_sessions() == []

        await session.send("two")

        assert client.get_session("s-9") is session
        assert [info.session_id for info in client.list_active_sessions()] == ["s-9"]
        assert client.abort_session("s-9") is True

    @pytest.mark.asyncio
    async def test_preset_session_id_registered_after_send(self, fake_runner, scripted_run):
        from agent_cli_sdk.types.options import ClaudeOptions

        fake_runner.script(scripted_run(stdout=_result_line("known")))
        client = _client(fake_runner)
        session = client.create_session(ClaudeOptions(session_id="known"))

        assert client.get_session("known") is None
        await session.send("hi")

        assert client.get_session("known") is session

    @pytest.mark.asyncio
    async def test_failed_first_send_not_registered(self, fake_runner, scripted_run):
        from agent_cli_sdk.errors import SpawnError

        fake_runner.script(scripted_run(error=SpawnError("claude", "Command not found: claude")))
        client = _client(fake_runner)
        session = client.create_session()

        with pytest.raises(SpawnError):
            await session.send("hi")

        assert client.list_active_sessions() == []

    @pytest.mark.asyncio
    async def test_abort_session_removes_it(self, fake_runner, scripted_run):
        fake_runner.script(scripted_run(stdout=_result_line("s-2")))
        client = _client(fake_runner)
        session = client.create_session()
        await session.send("hi")

        assert client.abort_session("s-2") is True

        assert session.is_aborted
        assert client.get_session("s-2") is None
        assert client.abort_session("s-2") is False

    @pytest.mark.asyncio
    async def test_direct_abort_unregisters(self, fake_runner, scripted_run):
        fake_runner.script(scripted_run(stdout=_result_line("s-3")))
        client = _client(fake_runner)
        session = client.create_session()
        await session.send("hi")

        session.abort()

        assert client.list_active_sessions() == []

    @pytest.mark.asyncio
    async def test_abort_unknown_id(self, fake_runner):
        assert _client(fake_runner).abort_session("missing") is False

    @pytest.mark.asyncio
    async def test_abort_in_flight_through_client(self, fake_runner, scripted_run):
        from agent_cli_sdk.errors import SessionAbortedError

        fake_runner.script(
            scripted_run(stdout=_result_line("s-4")),
            scripted_run(block=True),
        )
        client = _client(fake_runner)
        session = client.create_session()
        await session.send("first")

        second = asyncio.ensure_future(session.send("second"))
        await fake_runner.started.wait()
        assert client.abort_session("s-4") is True

        with pytest.raises(SessionAbortedError):
            await second
        assert client.get_session("s-4") is None


class TestClientDefaults:
    """Client-level defaults flow into every call."""

    @pytest.mark.asyncio
    async def test_working_dir_applied(self, fake_runner, scripted_run):
        fake_runner.script(scripted_run(stdout=_result_line("x")))
        client = _client(fake_runner, working_dir="/projects/app")

        await client.execute("hi")
        session = client.create_session()
        await session.send("hi")

        assert [c["cwd"] for c in fake_runner.calls] == ["/projects/app", "/projects/app"]

    @pytest.mark.asyncio
    async def test_call_options_win(self, fake_runner, scripted_run):
        fake_runner.script(scripted_run(stdout=_result_line("x")))
        client = _client(fake_runner, working_dir="/projects/app")

        await client.execute("hi", working_dir="/elsewhere")

        assert fake_runner.calls[-1]["cwd"] == "/elsewhere"

    @pytest.mark.asyncio
    async def test_execute_does_not_register(self, fake_runner, scripted_run):
        fake_runner.script(scripted_run(stdout=_result_line("single")))
        client = _client(fake_runner)

        response = await client.execute("hi")

        assert response.session_id == "single"
        assert client.list_active_sessions() == []

    @pytest.mark.asyncio
    async def test_session_logs_under_client_log_path(self, fake_runner, scripted_run, tmp_path):
        fake_runner.script(scripted_run(stdout=_result_line("logged")))
        client = _client(fake_runner, log_path=str(tmp_path))
        session = client.create_session()

        await session.send("hi")
        await client.adapter.log_writer.drain()

        assert (tmp_path / "message-1" / "input.json").exists()


class TestClientConstruction:
    """Adapter selection and capabilities."""

    def test_adapter_by_name(self):
        from agent_cli_sdk.adapters import GeminiAdapter
        from agent_cli_sdk.client.agent_client import AgentClient

        client = AgentClient("gemini", cli_path="/bin/gemini")

        assert isinstance(client.adapter, GeminiAdapter)
        assert client.adapter.cli_path == "/bin/gemini"
        assert client.get_capabilities().session_management is True

    def test_unknown_adapter_name(self):
        from agent_cli_sdk.client.agent_client import AgentClient
        from agent_cli_sdk.errors import ValidationError

        with pytest.raises(ValidationError):
            AgentClient("nonexistent")

    def test_create_session_requires_capability(self):
        from agent_cli_sdk.adapters.base import BaseCLIAdapter
        from agent_cli_sdk.adapters.capabilities import AdapterCapabilities
        from agent_cli_sdk.client.agent_client import AgentClient
        from agent_cli_sdk.errors import CapabilityError
        from agent_cli_sdk.types.options import ExecutionOptions

        class OneShotAdapter(BaseCLIAdapter):
            name = "one-shot"
            cli_name = "one-shot"

            def build_invocation_args(
                self,
                prompt: str,
                options: ExecutionOptions,
                existing_session_id: Optional[str] = None,
            ) -> List[str]:
                return [prompt]

            def interpret(self, event):
                return []

            def get_capabilities(self) -> AdapterCapabilities:
                return AdapterCapabilities(session_management=False)

        client = AgentClient(OneShotAdapter())

        with pytest.raises(CapabilityError) as exc_info:
            client.create_session()

        assert exc_info.value.capability == "session_management"
        assert exc_info.value.adapter == "one-shot"


class TestActiveSessionRegistry:
    """Registry bookkeeping in isolation."""

    def test_sessions_without_id_are_skipped(self, fake_runner):
        from agent_cli_sdk.adapters.claude import ClaudeAdapter
        from agent_cli_sdk.client.registry import ActiveSessionRegistry
        from agent_cli_sdk.client.session import AgentSession

        registry = ActiveSessionRegistry()
        registry.register(AgentSession(ClaudeAdapter(runner=fake_runner)))

        assert len(registry) == 0

    def test_register_and_unregister(self, fake_runner):
        from agent_cli_sdk.adapters.claude import ClaudeAdapter
        from agent_cli_sdk.client.registry import ActiveSessionRegistry
        from agent_cli_sdk.client.session import AgentSession
        from agent_cli_sdk.types.options import ClaudeOptions

        registry = ActiveSessionRegistry()
        session = AgentSession(
            ClaudeAdapter(runner=fake_runner), ClaudeOptions(session_id="known")
        )

        registry.register(session)
        assert "known" in registry
        assert registry.unregister("known") is session
        assert registry.unregister("known") is None
        assert "known" not in registry
