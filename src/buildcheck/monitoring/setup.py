"""
Monitoring setup.

Writes the static JSON configuration consumed by the deployment's health,
performance, certificate, log and alert monitors.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from buildcheck.config import BuildCheckConfig
from buildcheck.domain.taxonomy import ValidationStatus

logger = logging.getLogger(__name__)


class MonitoringStatus(StrEnum):
    OPERATIONAL = "Operational"
    DEGRADED = "Degraded"
    FAILED = "Failed"


@dataclass(slots=True)
class MonitoringSetupResult:
    output_dir: Path
    components: dict[str, bool] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def status(self) -> MonitoringStatus:
        total = len(self.components)
        succeeded = sum(self.components.values())
        if total and succeeded == total:
            return MonitoringStatus.OPERATIONAL
        if succeeded > total / 2:
            return MonitoringStatus.DEGRADED
        return MonitoringStatus.FAILED

    @property
    def validation_status(self) -> ValidationStatus:
        if self.status is MonitoringStatus.OPERATIONAL:
            return ValidationStatus.PASSED
        return ValidationStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "outputDir": str(self.output_dir),
            "components": dict(self.components),
            "failures": dict(self.failures),
        }


class MonitoringConfigurator:
    """Generate monitoring configuration files for a workspace."""

    def __init__(self, workspace: Path, config: BuildCheckConfig) -> None:
        self.workspace = workspace
        self.config = config

    @property
    def output_dir(self) -> Path:
        return self.workspace / self.config.monitoring.output_dir

    def documents(self) -> dict[str, dict[str, Any]]:
        monitoring = self.config.monitoring
        health = self.config.health
        environment = self.config.environment
        return {
            "health-config.json": {
                "intervalSeconds": monitoring.health_interval_seconds,
                "timeoutSeconds": health.timeout_seconds,
                "endpoints": {
                    "api": health.api_url + health.health_path,
                    "web": health.web_url + health.health_path,
                },
                "containers": list(health.expected_containers),
            },
            "performance-config.json": {
                "sampleSeconds": monitoring.performance_sample_seconds,
                "metrics": ["cpu", "memory", "responseTime", "requestRate"],
            },
            "certificate-config.json": {
                "certificateVariable": "SSL_CERT_PATH",
                "expiryWarningDays": environment.certificate_expiry_days,
            },
            "log-config.json": {
                "retentionDays": monitoring.log_retention_days,
                "levels": ["Critical", "Error", "Warning"],
            },
            "alert-config.json": {
                "channels": list(monitoring.alert_channels),
                "rules": [
                    {"component": "API", "state": "Critical"},
                    {"component": "Database", "state": "Critical"},
                    {"component": "SSL", "state": "Warning"},
                ],
            },
        }

    def setup(self) -> MonitoringSetupResult:
        result = MonitoringSetupResult(output_dir=self.output_dir)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Cannot create monitoring directory %s: %s", self.output_dir, e)
            for name in self.documents():
                result.components[name] = False
                result.failures[name] = str(e)
            return result

        for name, document in self.documents().items():
            try:
                (self.output_dir / name).write_text(
                    json.dumps(document, indent=2) + "\n", encoding="utf-8"
                )
                result.components[name] = True
            except OSError as e:
                logger.error("Failed to write %s: %s", name, e)
                result.components[name] = False
                result.failures[name] = str(e)
        return result
