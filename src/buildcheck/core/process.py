"""
External process execution.

Compilers, container engines and test runners are opaque processes: they are
run with a timeout, their output is captured, and a shared cancellation event
can stop them mid-flight without leaving children behind.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from buildcheck.domain.errors import PipelineCancelledError

logger = logging.getLogger(__name__)

TIMEOUT_RETURNCODE = -1


@dataclass(slots=True)
class ProcessResult:
    """Captured outcome of one external process"""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """stdout followed by stderr"""
        if self.stderr and self.stdout:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr


def expand_command(template: Sequence[str], **values: str) -> list[str]:
    """Fill ``{placeholder}`` tokens in an argument-list template."""
    return [part.format(**values) for part in template]


class ProcessRunner:
    """Run external processes with timeout and cancellation.

    Attributes:
        cancel_event: When set, running and future processes are aborted
        poll_interval: Seconds between cancellation checks
    """

    def __init__(
        self,
        cancel_event: threading.Event | None = None,
        poll_interval: float = 0.2,
    ) -> None:
        self.cancel_event = cancel_event or threading.Event()
        self.poll_interval = poll_interval

    def check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise PipelineCancelledError(message="Validation cancelled", code="cancelled")

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult:
        """Run a process to completion, timeout or cancellation.

        Args:
            args: Program and arguments (no shell)
            cwd: Working directory
            timeout: Seconds before the process is killed
            env: Full environment for the child, or None to inherit

        Returns:
            ProcessResult; a timeout yields ``timed_out=True``

        Raises:
            FileNotFoundError: If the program does not exist
            PipelineCancelledError: If cancellation was requested
        """
        self.check_cancelled()
        command = list(args)
        logger.debug("Running %s (cwd=%s)", " ".join(command), cwd)

        start = time.monotonic()
        deadline = None if timeout is None else start + timeout
        process = subprocess.Popen(
            command,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )

        try:
            while True:
                wait = self.poll_interval
                if deadline is not None:
                    wait = max(0.0, min(wait, deadline - time.monotonic()))
                try:
                    stdout, stderr = process.communicate(timeout=wait)
                    break
                except subprocess.TimeoutExpired:
                    if self.cancel_event.is_set():
                        self._kill(process)
                        raise PipelineCancelledError(
                            message=f"Cancelled while running: {command[0]}", code="cancelled"
                        ) from None
                    if deadline is not None and time.monotonic() >= deadline:
                        stdout, stderr = self._kill(process)
                        logger.warning("Process timed out after %.0fs: %s", timeout, command[0])
                        return ProcessResult(
                            args=command,
                            returncode=TIMEOUT_RETURNCODE,
                            stdout=stdout,
                            stderr=stderr,
                            duration=time.monotonic() - start,
                            timed_out=True,
                        )
        except BaseException as e:
            # No child may outlive an interrupted run.
            if isinstance(e, KeyboardInterrupt):
                self.cancel_event.set()
            if process.poll() is None:
                self._kill(process)
            raise

        return ProcessResult(
            args=command,
            returncode=process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            duration=time.monotonic() - start,
        )

    @staticmethod
    def _kill(process: subprocess.Popen[str]) -> tuple[str, str]:
        process.kill()
        stdout, stderr = process.communicate()
        return stdout or "", stderr or ""
