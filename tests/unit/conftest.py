"""
Fixtures for unit tests: a scripted stand-in for ProcessRunner.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest

from agent_cli_sdk.cli_agents.executor import ProcessResult


@dataclass
class ScriptedRun:
    """What one fake process run produces."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    chunks: Optional[List[str]] = None
    error: Optional[BaseException] = None
    block: bool = False


@dataclass
class FakeRunner:
    """
    Drop-in for ProcessRunner.spawn that never starts a process.

    Runs are consumed in order; the last one repeats. Chunk callbacks are
    invoked before spawn returns, like the real runner.
    """

    runs: List[ScriptedRun] = field(default_factory=lambda: [ScriptedRun()])
    calls: List[Dict[str, Any]] = field(default_factory=list)
    cancelled: int = 0

    def __post_init__(self) -> None:
        self.started = asyncio.Event()

    def script(self, *runs: ScriptedRun) -> "FakeRunner":
        self.runs = list(runs)
        return self

    @property
    def last_args(self) -> List[str]:
        return self.calls[-1]["args"]

    async def spawn(
        self,
        executable,
        args,
        *,
        cwd=None,
        env=None,
        timeout_ms=None,
        idle_timeout_ms=None,
        on_stdout_chunk=None,
        on_stderr_chunk=None,
    ) -> ProcessResult:
        self.calls.append(
            {
                "executable": executable,
                "args": list(args),
                "cwd": cwd,
                "env": dict(env or {}),
                "timeout_ms": timeout_ms,
                "idle_timeout_ms": idle_timeout_ms,
            }
        )
        run = self.runs.pop(0) if len(self.runs) > 1 else self.runs[0]

        if on_stdout_chunk is not None:
            for chunk in run.chunks if run.chunks is not None else [run.stdout]:
                on_stdout_chunk(chunk)
        if on_stderr_chunk is not None and run.stderr:
            on_stderr_chunk(run.stderr)

        if run.block:
            self.started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled += 1
                raise

        if run.error is not None:
            raise run.error

        return ProcessResult(
            stdout=run.stdout, stderr=run.stderr, exit_code=run.exit_code, duration_ms=5
        )


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def scripted_run():
    """The ScriptedRun class, for building FakeRunner scripts."""
    return ScriptedRun
