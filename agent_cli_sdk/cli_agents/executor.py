"""
ProcessRunner: Subprocess management for CLI agent execution.

Handles spawning, environment merging, incremental output capture, and
timeouts. Includes an idle timeout for CLI processes that hang after they
have produced their answer.
"""

import asyncio
import codecs
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from agent_cli_sdk.config import get_settings
from agent_cli_sdk.errors import ExecutionError, ExecutionTimeoutError, SpawnError

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], None]


@dataclass
class ProcessResult:
    """Result from a CLI process that ran to completion."""

    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int


class _StreamCapture:
    """Accumulates one pipe's decoded text and forwards it to a callback."""

    def __init__(self, name: str, callback: Optional[ChunkCallback]):
        self.name = name
        self._callback = callback
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._chunks: List[str] = []

    def feed(self, data: bytes, final: bool = False) -> None:
        text = self._decoder.decode(data, final=final)
        if not text:
            return
        self._chunks.append(text)
        if self._callback is not None:
            try:
                self._callback(text)
            except Exception as e:
                logger.warning(f"{self.name} callback raised: {e}", exc_info=True)

    @property
    def text(self) -> str:
        return "".join(self._chunks)


class ProcessRunner:
    """
    Runs CLI agents as subprocesses.

    Provides:
    - Environment merging (call env over the inherited environment)
    - Incremental UTF-8 decoding with per-chunk callbacks
    - Total timeout with SIGTERM, then SIGKILL after a grace period
    - Idle timeout to detect hung processes
    - Child cleanup when the awaiting task is cancelled
    """

    def __init__(
        self,
        kill_grace_ms: Optional[int] = None,
        idle_timeout_ms: Optional[int] = None,
        read_chunk_size: Optional[int] = None,
    ):
        execution = get_settings().execution
        self._kill_grace_ms = (
            kill_grace_ms if kill_grace_ms is not None else execution.kill_grace_ms
        )
        self._idle_timeout_ms = (
            idle_timeout_ms if idle_timeout_ms is not None else execution.idle_timeout_ms
        )
        self._default_timeout_ms = execution.default_timeout_ms
        self._read_chunk_size = read_chunk_size or execution.read_chunk_size

    async def spawn(
        self,
        executable: str,
        args: Sequence[str],
        *,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        timeout_ms: Optional[int] = None,
        idle_timeout_ms: Optional[int] = None,
        on_stdout_chunk: Optional[ChunkCallback] = None,
        on_stderr_chunk: Optional[ChunkCallback] = None,
    ) -> ProcessResult:
        """
        Spawn ``executable`` with ``args`` and wait for it to finish.

        Args:
            executable: Program to run, passed to the OS verbatim
            args: Arguments, never interpreted by a shell
            cwd: Working directory (optional)
            env: Variables merged over the inherited environment
            timeout_ms: Total deadline; falls back to configuration
            idle_timeout_ms: Silence allowed after first output
            on_stdout_chunk: Called with each decoded stdout chunk
            on_stderr_chunk: Called with each decoded stderr chunk

        Returns:
            ProcessResult with full stdout, stderr, exit code and duration

        Raises:
            SpawnError: The process could not be started
            ExecutionTimeoutError: A deadline expired and the child was killed
            ExecutionError: The child exposed no readable output streams
        """
        timeout_ms = timeout_ms if timeout_ms is not None else self._default_timeout_ms
        idle_timeout_ms = (
            idle_timeout_ms if idle_timeout_ms is not None else self._idle_timeout_ms
        )
        full_env = dict(os.environ)
        if env:
            full_env.update(env)

        logger.debug(f"Executing: {executable} {' '.join(args)}")
        logger.debug(f"CWD: {cwd}, timeout: {timeout_ms}ms, idle_timeout: {idle_timeout_ms}ms")

        start_time = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *args,
                env=full_env,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            # Could be command not found OR cwd not found
            if cwd and not Path(cwd).exists():
                logger.error(f"Working directory not found: {cwd}")
                raise SpawnError(executable, f"Working directory not found: {cwd}") from e
            logger.error(f"Command not found: {executable}")
            raise SpawnError(executable, f"Command not found: {executable}") from e
        except PermissionError as e:
            logger.error(f"Permission denied: {executable}")
            raise SpawnError(executable, f"Permission denied: {executable}") from e
        except OSError as e:
            logger.error(f"Failed to start {executable}: {e}")
            raise SpawnError(executable, f"Failed to start {executable}: {e}") from e

        if process.stdout is None or process.stderr is None:
            await self._kill(process)
            raise ExecutionError("Process exposes no readable output streams")

        stdout = _StreamCapture("stdout", on_stdout_chunk)
        stderr = _StreamCapture("stderr", on_stderr_chunk)
        last_output_time: Optional[float] = None

        async def pump(stream: asyncio.StreamReader, capture: _StreamCapture) -> None:
            nonlocal last_output_time
            while True:
                data = await stream.read(self._read_chunk_size)
                if not data:
                    capture.feed(b"", final=True)
                    return
                last_output_time = time.monotonic()
                capture.feed(data)

        completion = asyncio.gather(
            pump(process.stdout, stdout),
            pump(process.stderr, stderr),
            process.wait(),
        )
        deadline = start_time + timeout_ms / 1000 if timeout_ms else None

        try:
            while True:
                wait_timeout = self._next_wakeup(deadline, last_output_time, idle_timeout_ms)
                done, _ = await asyncio.wait({completion}, timeout=wait_timeout)
                if done:
                    break

                now = time.monotonic()
                if deadline is not None and now >= deadline:
                    logger.warning(f"Total timeout ({timeout_ms}ms) exceeded, terminating process")
                    await self._terminate(process)
                    raise ExecutionTimeoutError(
                        timeout_ms, stdout=stdout.text, stderr=stderr.text
                    )

                # Idle timeout only applies once some output has been seen
                if (
                    idle_timeout_ms
                    and last_output_time is not None
                    and now - last_output_time >= idle_timeout_ms / 1000
                ):
                    logger.warning(
                        f"Idle timeout ({idle_timeout_ms}ms) exceeded - no output for "
                        f"{now - last_output_time:.1f}s. Process may be hung. Terminating."
                    )
                    await self._terminate(process)
                    raise ExecutionTimeoutError(
                        idle_timeout_ms, stdout=stdout.text, stderr=stderr.text, idle=True
                    )

            _, _, returncode = completion.result()

        except asyncio.CancelledError:
            logger.warning("Execution cancelled, killing subprocess")
            await self._kill(process)
            raise
        finally:
            if not completion.done():
                completion.cancel()
                try:
                    await completion
                except (asyncio.CancelledError, Exception):
                    pass

        # Signal-killed children report a negative code
        exit_code = returncode if returncode is not None and returncode >= 0 else 1
        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.debug(f"Process exited with {returncode} after {duration_ms}ms")

        return ProcessResult(
            stdout=stdout.text,
            stderr=stderr.text,
            exit_code=exit_code,
            duration_ms=duration_ms,
        )

    @staticmethod
    def _next_wakeup(
        deadline: Optional[float],
        last_output_time: Optional[float],
        idle_timeout_ms: Optional[int],
    ) -> Optional[float]:
        """Seconds until the next deadline check, or None to wait for close."""
        now = time.monotonic()
        candidates = []
        if deadline is not None:
            candidates.append(deadline - now)
        if idle_timeout_ms:
            if last_output_time is None:
                # Re-check periodically until first output arrives
                candidates.append(idle_timeout_ms / 1000)
            else:
                candidates.append(last_output_time + idle_timeout_ms / 1000 - now)
        if not candidates:
            return None
        return max(min(candidates), 0)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Send one SIGTERM, then SIGKILL if still alive after the grace period."""
        if process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=self._kill_grace_ms / 1000)
        except asyncio.TimeoutError:
            logger.warning(
                f"Process ignored SIGTERM for {self._kill_grace_ms}ms, sending SIGKILL"
            )
            await self._kill(process)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()
