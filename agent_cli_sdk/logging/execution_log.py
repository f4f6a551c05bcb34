"""Per-execution input/output logs written off the event loop."""

import asyncio
import json
import logging
import os
import time
import traceback
from typing import Any, Dict, Optional, Set

logger = logging.getLogger(__name__)

INPUT_FILE = "input.json"
OUTPUT_FILE = "output.json"
ERROR_FILE = "error.json"


def session_message_log_path(base_log_path: str, message_number: int) -> str:
    """Log directory for the ``message_number``-th turn of a session."""
    return os.path.join(base_log_path, f"message-{message_number}")


def _error_record(error: BaseException) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "timestamp": time.time(),
        "type": type(error).__name__,
        "message": str(error),
        "stack": "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        ),
    }
    category = getattr(error, "category", None)
    if category is not None:
        record["code"] = category.name
    return record


def _write_logs(log_path: str, files: Dict[str, Any]) -> None:
    os.makedirs(log_path, exist_ok=True)
    for name, payload in files.items():
        with open(os.path.join(log_path, name), "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)


class ExecutionLogWriter:
    """
    Writes ``input.json``, ``output.json`` and ``error.json`` for an execution.

    Writes run in a worker thread and are never awaited by the execution that
    produced them. A failed write is logged and otherwise ignored.
    """

    def __init__(self) -> None:
        self._pending: Set["asyncio.Task[None]"] = set()

    def submit(
        self,
        log_path: str,
        input_data: Dict[str, Any],
        output: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        files: Dict[str, Any] = {INPUT_FILE: input_data}
        if output is not None:
            files[OUTPUT_FILE] = output
        if error is not None:
            files[ERROR_FILE] = _error_record(error)

        task = asyncio.get_running_loop().create_task(
            asyncio.to_thread(_write_logs, log_path, files)
        )
        self._pending.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: "asyncio.Task[None]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Failed to write execution logs: {exc}")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all submitted writes to finish."""
        if self._pending:
            logger.debug(f"Waiting for {self.pending} execution log write(s)")
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
