"""
Unit tests for external process execution
"""

import subprocess
import sys
import threading

import pytest

from buildcheck.core import ProcessRunner
from buildcheck.core.process import expand_command
from buildcheck.domain.errors import PipelineCancelledError


def python(code):
    return [sys.executable, "-c", code]


class TestProcessRunner:
    def test_captures_output(self, tmp_path):
        result = ProcessRunner().run(
            python("import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"),
            cwd=tmp_path,
        )

        assert result.returncode == 3
        assert result.stdout.strip() == "out"
        assert result.stderr.strip() == "err"
        assert not result.succeeded
        assert result.output.split() == ["out", "err"]

    def test_timeout_kills_process(self):
        result = ProcessRunner(poll_interval=0.05).run(
            python("import time; time.sleep(30)"), timeout=0.3
        )

        assert result.timed_out
        assert result.returncode == -1
        assert result.duration < 10

    def test_missing_program_raises(self):
        with pytest.raises(FileNotFoundError):
            ProcessRunner().run(["buildcheck-no-such-program"])

    def test_cancel_before_start(self):
        event = threading.Event()
        event.set()

        with pytest.raises(PipelineCancelledError):
            ProcessRunner(cancel_event=event).run(python("pass"))

    def test_cancel_while_running(self):
        event = threading.Event()
        runner = ProcessRunner(cancel_event=event, poll_interval=0.05)
        timer = threading.Timer(0.2, event.set)
        timer.start()
        try:
            with pytest.raises(PipelineCancelledError):
                runner.run(python("import time; time.sleep(30)"), timeout=20)
        finally:
            timer.cancel()

    def test_interrupt_kills_child(self, monkeypatch):
        interrupted = []
        communicate = subprocess.Popen.communicate

        def interrupt_first_wait(process, *args, **kwargs):
            if kwargs.get("timeout") is not None and not interrupted:
                interrupted.append(process)
                raise KeyboardInterrupt
            return communicate(process, *args, **kwargs)

        monkeypatch.setattr(subprocess.Popen, "communicate", interrupt_first_wait)
        runner = ProcessRunner(poll_interval=0.05)

        with pytest.raises(KeyboardInterrupt):
            runner.run(python("import time; time.sleep(30)"), timeout=20)

        [process] = interrupted
        assert process.poll() is not None
        assert runner.cancel_event.is_set()


def test_expand_command():
    assert expand_command(["dotnet", "build", "{project}"], project="Api.csproj") == [
        "dotnet",
        "build",
        "Api.csproj",
    ]
