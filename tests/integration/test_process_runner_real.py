"""
Integration Tests: ProcessRunner with real child processes.
"""

import os
import time

import pytest


def _runner(**kwargs):
    from agent_cli_sdk.cli_agents.executor import ProcessRunner

    return ProcessRunner(**kwargs)


@pytest.mark.integration
@pytest.mark.cli_agents
class TestProcessRunnerReal:
    """Spawning, capture and termination against the real OS."""

    @pytest.mark.asyncio
    async def test_stdout_stderr_and_exit_code(self, python_exe):
        script = "import sys; print('out'); print('err', file=sys.stderr); sys.exit(4)"

        result = await _runner().spawn(python_exe, ["-c", script])

        assert result.stdout.strip() == "out"
        assert result.stderr.strip() == "err"
        assert result.exit_code == 4

    @pytest.mark.asyncio
    async def test_arguments_not_shell_interpreted(self, python_exe):
        tricky = "$HOME; echo pwned | `ls` 'quoted' \"double\""
        script = "import sys; sys.stdout.write(sys.argv[1])"

        result = await _runner().spawn(python_exe, ["-c", script, tricky])

        assert result.stdout == tricky

    @pytest.mark.asyncio
    async def test_env_merged_over_inherited(self, python_exe, monkeypatch):
        monkeypatch.setenv("INHERITED_FOR_TEST", "parent")
        script = (
            "import os; "
            "print(os.environ['INHERITED_FOR_TEST'], os.environ['ADDED_FOR_TEST'])"
        )

        result = await _runner().spawn(
            python_exe, ["-c", script], env={"ADDED_FOR_TEST": "child"}
        )

        assert result.stdout.split() == ["parent", "child"]
        assert "ADDED_FOR_TEST" not in os.environ

    @pytest.mark.asyncio
    async def test_working_directory(self, python_exe, tmp_path):
        script = "import os; print(os.getcwd())"

        result = await _runner().spawn(python_exe, ["-c", script], cwd=str(tmp_path))

        assert os.path.samefile(result.stdout.strip(), tmp_path)

    @pytest.mark.asyncio
    async def test_stdin_is_closed(self, python_exe):
        """A child reading stdin sees EOF instead of hanging."""
        script = "import sys; print(repr(sys.stdin.read()))"

        result = await _runner().spawn(python_exe, ["-c", script], timeout_ms=10_000)

        assert result.stdout.strip() == "''"

    @pytest.mark.asyncio
    async def test_timeout_kills_child_promptly(self, python_exe):
        from agent_cli_sdk.errors import ExecutionTimeoutError

        script = "import time; print('started', flush=True); time.sleep(30)"
        start = time.monotonic()

        with pytest.raises(ExecutionTimeoutError) as exc_info:
            await _runner(kill_grace_ms=500).spawn(python_exe, ["-c", script], timeout_ms=300)

        assert time.monotonic() - start < 5
        assert "started" in exc_info.value.stdout

    @pytest.mark.asyncio
    async def test_sigterm_ignored_then_killed(self, python_exe):
        from agent_cli_sdk.errors import ExecutionTimeoutError

        script = (
            "import signal, time\n"
            "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
            "print('ready', flush=True)\n"
            "time.sleep(30)\n"
        )
        start = time.monotonic()

        with pytest.raises(ExecutionTimeoutError):
            await _runner(kill_grace_ms=200).spawn(python_exe, ["-c", script], timeout_ms=500)

        assert time.monotonic() - start < 5

    @pytest.mark.asyncio
    async def test_missing_executable(self, tmp_path):
        from agent_cli_sdk.errors import SpawnError

        with pytest.raises(SpawnError, match="Command not found"):
            await _runner().spawn(str(tmp_path / "no-such-cli"), [])

    @pytest.mark.asyncio
    async def test_streaming_chunks_arrive_before_exit(self, python_exe):
        script = (
            "import time\n"
            "print('first', flush=True)\n"
            "time.sleep(0.3)\n"
            "print('second', flush=True)\n"
        )
        arrivals = []

        result = await _runner().spawn(
            python_exe,
            ["-c", script],
            on_stdout_chunk=lambda chunk: arrivals.append((time.monotonic(), chunk)),
        )

        assert "".join(c for _, c in arrivals) == result.stdout
        assert arrivals[0][1].startswith("first")
        assert arrivals[-1][0] - arrivals[0][0] >= 0.2
