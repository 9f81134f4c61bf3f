"""
Tests for the buildcheck command-line interface
"""

import signal
import threading

import pytest

from buildcheck import __version__
from buildcheck.application import DiagnoseService, ValidateService
from buildcheck.cli import cancel_on_interrupt
from buildcheck.domain.results import CommandResult
from buildcheck.environment import ComponentHealth, HealthState, SystemHealthStatus
from buildcheck.orchestrator import ValidationOrchestrator
from tests.utils import invoke_cli, invoke_json


@pytest.fixture
def fake_services(monkeypatch, fake_runner, clean_environ):
    """Route CLI services through orchestrators using the fake process runner"""

    def factory(workspace, config):
        return ValidationOrchestrator(workspace, config, runner=fake_runner, environ=clean_environ)

    monkeypatch.setattr("buildcheck.cli.ValidateService", lambda: ValidateService(factory=factory))
    monkeypatch.setattr("buildcheck.cli.DiagnoseService", lambda: DiagnoseService(factory=factory))
    return factory


class TestCliBasics:
    def test_version(self):
        result = invoke_cli("--version")

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self):
        result = invoke_cli("--help")

        assert result.exit_code == 0
        for command in ("validate", "build", "docker", "environment", "test", "health", "diagnose"):
            assert command in result.output

    def test_help_command(self):
        result = invoke_cli("help")

        assert result.exit_code == 0
        assert "monitoring" in result.output

    def test_unknown_command_is_usage_error(self):
        result = invoke_cli("frobnicate")

        assert result.exit_code == 2

    def test_missing_workspace(self, tmp_path):
        result = invoke_cli("build", "--workspace", str(tmp_path / "missing"))

        assert result.exit_code == 1
        assert "Workspace directory not found" in result.output


class TestValidationCommands:
    def test_build_passes(self, dotnet_workspace, fake_services):
        result = invoke_cli("build", "-w", str(dotnet_workspace))

        assert result.exit_code == 0, result.output
        assert "PASSED" in result.output

    def test_build_failure_exits_nonzero(self, builder, fake_services, fake_runner):
        builder.central_packages({})
        builder.project("src/Api/Api.csproj")
        fake_runner.when("dotnet build", returncode=1, stdout="Program.cs(1,1): error CS1002: ; expected")

        result = invoke_cli("build", "-w", str(builder.root))

        assert result.exit_code == 1
        assert "FAILED" in result.output

    def test_bracketed_paths_printed_verbatim(self, builder, fake_services, fake_runner):
        builder.central_packages({})
        builder.project("src/Api/Api.csproj")
        output = "Linking failed [/ws/src/Api/Api.csproj]\n"
        fake_runner.when("dotnet build", returncode=1, stdout=output)

        result = invoke_cli("build", "-w", str(builder.root))

        assert result.exit_code == 1
        assert "Linking failed [/ws/src/Api/Api.csproj]" in result.output
        assert "Overall status" in result.output

    def test_json_output(self, dotnet_workspace, fake_services):
        result, payload = invoke_json("build", "-w", str(dotnet_workspace))

        assert result.exit_code == 0
        assert payload["success"] is True
        assert payload["code"] == "passed"
        assert payload["data"]["target"] == "build"

    def test_aliases(self, dotnet_workspace, fake_services):
        result, payload = invoke_json("monitor", "-w", str(dotnet_workspace))

        assert result.exit_code == 0
        assert payload["data"]["target"] == "monitoring"

    def test_env_alias_runs_environment(self, builder, dotnet_workspace, fake_services):
        builder.config({"environment": {"checkDatabase": False}})
        result = invoke_cli("env", "-w", str(dotnet_workspace))

        # The default configuration requires TLS variables the clean environment lacks.
        assert result.exit_code == 1
        assert "Validation target: environment" in result.output
        assert "SSL_CERT_PATH" in result.output

    def test_workspace_config_is_loaded(self, builder, dotnet_workspace, fake_services):
        builder.config({"resolution": {"enabled": False}, "docker": {"buildTest": False}})

        _, payload = invoke_json("docker", "-w", str(dotnet_workspace))

        assert payload["data"]["resolutions"] == {}

    def test_invalid_config_reports_error(self, builder, fake_services):
        builder.config({"resolution": {"successThreshold": 3}})

        result = invoke_cli("build", "-w", str(builder.root))

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestDiagnoseCommand:
    def test_report_printed(self, temp_workspace, fake_services):
        log = temp_workspace / "build.log"
        log.write_text("error: first\nall good\nerror: second\n")

        result = invoke_cli("diagnose", str(log), "-w", str(temp_workspace))

        assert result.exit_code == 1
        assert "=== ERROR DIAGNOSIS REPORT ===" in result.output
        assert "Total errors: 2" in result.output

    def test_missing_log(self, temp_workspace, fake_services):
        result = invoke_cli("diagnose", str(temp_workspace / "nope.log"), "-w", str(temp_workspace))

        assert result.exit_code == 1
        assert "Log file not found" in result.output


class StubHealthService:
    def run(self, *, workspace):
        status = SystemHealthStatus()
        status.add(ComponentHealth("API", HealthState.HEALTHY, "200"))
        status.add(ComponentHealth("SSL", HealthState.WARNING, "[/certs/api.pem] expires soon"))
        return CommandResult(
            success=False,
            code=status.overall.value.lower(),
            message="Overall health: Warning",
            data=status.to_dict(),
            artifact=status,
        )


class TestHealthCommand:
    def test_renders_components(self, temp_workspace, monkeypatch):
        monkeypatch.setattr("buildcheck.cli.HealthService", StubHealthService)

        result = invoke_cli("health", "-w", str(temp_workspace))

        assert result.exit_code == 1
        assert "System health" in result.output
        assert "Warning" in result.output
        assert "[/certs/api.pem]" in result.output


class TestCancelOnInterrupt:
    """Ctrl-C handling around long-running commands"""

    def test_first_interrupt_requests_cancellation(self):
        event = threading.Event()
        previous = signal.getsignal(signal.SIGINT)

        with cancel_on_interrupt(event):
            handler = signal.getsignal(signal.SIGINT)
            handler(signal.SIGINT, None)
            assert event.is_set()
            with pytest.raises(KeyboardInterrupt):
                handler(signal.SIGINT, None)

        assert signal.getsignal(signal.SIGINT) is previous
