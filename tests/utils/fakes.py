"""Stand-ins for external processes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from buildcheck.core.process import ProcessResult, ProcessRunner


@dataclass
class _Rule:
    fragment: str
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    raises: BaseException | None = None


class FakeProcessRunner(ProcessRunner):
    """Answers commands from canned rules and records every call.

    Rules match when their fragment occurs in the space-joined command line;
    the most recently added matching rule wins. Unmatched commands succeed.
    """

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[list[str]] = []
        self.rules: list[_Rule] = []

    def when(
        self,
        fragment: str,
        *,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        timed_out: bool = False,
        raises: BaseException | None = None,
    ) -> FakeProcessRunner:
        self.rules.append(_Rule(fragment, returncode, stdout, stderr, timed_out, raises))
        return self

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        env=None,
    ) -> ProcessResult:
        self.check_cancelled()
        command = list(args)
        self.calls.append(command)
        joined = " ".join(command)
        for rule in reversed(self.rules):
            if rule.fragment in joined:
                if rule.raises is not None:
                    raise rule.raises
                return ProcessResult(
                    args=command,
                    returncode=-1 if rule.timed_out else rule.returncode,
                    stdout=rule.stdout,
                    stderr=rule.stderr,
                    timed_out=rule.timed_out,
                )
        return ProcessResult(args=command, returncode=0)

    def commands_containing(self, fragment: str) -> list[list[str]]:
        return [call for call in self.calls if fragment in " ".join(call)]
