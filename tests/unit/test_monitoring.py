"""
Unit tests for monitoring configuration setup
"""

import json

from buildcheck.config import BuildCheckConfig
from buildcheck.domain.taxonomy import ValidationStatus
from buildcheck.monitoring import MonitoringConfigurator, MonitoringSetupResult, MonitoringStatus


class TestMonitoringConfigurator:
    def test_writes_all_documents(self, temp_workspace):
        config = BuildCheckConfig.model_validate(
            {"health": {"expectedContainers": ["inventory-api"]}, "monitoring": {"logRetentionDays": 7}}
        )

        result = MonitoringConfigurator(temp_workspace, config).setup()

        assert result.status == MonitoringStatus.OPERATIONAL
        assert result.validation_status == ValidationStatus.PASSED
        output = temp_workspace / ".buildcheck/monitoring"
        assert sorted(p.name for p in output.iterdir()) == [
            "alert-config.json",
            "certificate-config.json",
            "health-config.json",
            "log-config.json",
            "performance-config.json",
        ]
        health = json.loads((output / "health-config.json").read_text())
        assert health["containers"] == ["inventory-api"]
        assert health["endpoints"]["api"] == "http://{SERVER_IP}:{API_PORT}/health"
        assert json.loads((output / "log-config.json").read_text())["retentionDays"] == 7

    def test_unwritable_directory_fails(self, temp_workspace):
        (temp_workspace / "blocked").write_text("not a directory")
        config = BuildCheckConfig.model_validate({"monitoring": {"outputDir": "blocked/monitoring"}})

        result = MonitoringConfigurator(temp_workspace, config).setup()

        assert result.status == MonitoringStatus.FAILED
        assert result.validation_status == ValidationStatus.FAILED
        assert len(result.failures) == 5


class TestMonitoringStatus:
    def _result(self, tmp_path, successes, failures):
        result = MonitoringSetupResult(output_dir=tmp_path)
        for i in range(successes):
            result.components[f"ok-{i}"] = True
        for i in range(failures):
            result.components[f"bad-{i}"] = False
        return result

    def test_majority_is_degraded(self, tmp_path):
        result = self._result(tmp_path, 4, 1)

        assert result.status == MonitoringStatus.DEGRADED
        assert result.validation_status == ValidationStatus.FAILED

    def test_half_is_failed(self, tmp_path):
        assert self._result(tmp_path, 2, 2).status == MonitoringStatus.FAILED

    def test_nothing_configured_is_failed(self, tmp_path):
        assert self._result(tmp_path, 0, 0).status == MonitoringStatus.FAILED
