"""
Live health check.

Checks the deployed system rather than its configuration: HTTP health
endpoints, database reachability, running containers and certificate expiry.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

import requests

from buildcheck.config import EnvironmentConfig, HealthConfig
from buildcheck.core.process import ProcessRunner
from buildcheck.core.retry import backoff_delays

from .certificates import inspect_certificate
from .network import database_endpoint, tcp_connect_failure

logger = logging.getLogger(__name__)


class HealthState(StrEnum):
    HEALTHY = "Healthy"
    WARNING = "Warning"
    CRITICAL = "Critical"


_STATE_RANK = {HealthState.HEALTHY: 0, HealthState.WARNING: 1, HealthState.CRITICAL: 2}


@dataclass(slots=True)
class ComponentHealth:
    name: str
    state: HealthState
    message: str = ""
    response_time_ms: float | None = None


@dataclass(slots=True)
class SystemHealthStatus:
    components: dict[str, ComponentHealth] = field(default_factory=dict)
    checked_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def overall(self) -> HealthState:
        return max(
            (component.state for component in self.components.values()),
            key=_STATE_RANK.__getitem__,
            default=HealthState.HEALTHY,
        )

    def add(self, component: ComponentHealth) -> None:
        self.components[component.name] = component

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall.value,
            "checkedAt": self.checked_at.isoformat(),
            "components": [
                {
                    "name": c.name,
                    "state": c.state.value,
                    "message": c.message,
                    "responseTimeMs": c.response_time_ms,
                }
                for c in self.components.values()
            ],
        }


class HealthChecker:
    """Check the running system.

    Attributes:
        config: Health section of the configuration
        environment: Environment section (connection string, cert threshold)
        environ: Variables used to build endpoint URLs
        runner: Process runner for the container engine
        session: HTTP session used for endpoint checks
        sleep: Delay function between HTTP retries
    """

    def __init__(
        self,
        config: HealthConfig,
        environment: EnvironmentConfig,
        runner: ProcessRunner,
        environ: Mapping[str, str] | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.environment = environment
        self.runner = runner
        self.environ = environ if environ is not None else dict(os.environ)
        self.session = session or requests.Session()
        self.sleep = sleep

    def endpoint(self, template: str) -> str:
        values = {
            "SERVER_IP": self.environ.get("SERVER_IP") or self.config.default_host,
            "API_PORT": self.environ.get("API_PORT") or str(self.config.default_api_port),
            "WEB_PORT": self.environ.get("WEB_PORT") or str(self.config.default_web_port),
        }
        return template.format(**values).rstrip("/") + self.config.health_path

    def check(self) -> SystemHealthStatus:
        status = SystemHealthStatus()
        status.add(self.check_http("API", self.endpoint(self.config.api_url)))
        status.add(self.check_http("WebClient", self.endpoint(self.config.web_url)))
        status.add(self.check_database())
        if self.config.expected_containers:
            status.add(self.check_containers())
        status.add(self.check_certificate())
        return status

    def check_http(self, name: str, url: str) -> ComponentHealth:
        """GET ``url``; 2xx is healthy. Failures are retried with backoff."""
        delays = backoff_delays(
            self.config.retries,
            self.config.backoff_base_seconds,
            self.config.backoff_max_seconds,
        )
        failure = ""
        for attempt in range(self.config.retries + 1):
            if attempt:
                self.sleep(next(delays))
            start = time.monotonic()
            try:
                response = self.session.get(url, timeout=self.config.timeout_seconds)
            except requests.RequestException as e:
                failure = f"{url} unreachable: {e}"
                logger.debug("Health check attempt %d for %s failed: %s", attempt + 1, name, e)
                continue
            elapsed = (time.monotonic() - start) * 1000
            if 200 <= response.status_code < 300:
                return ComponentHealth(
                    name=name,
                    state=HealthState.HEALTHY,
                    message=f"{url} responded {response.status_code}",
                    response_time_ms=round(elapsed, 1),
                )
            failure = f"{url} responded {response.status_code}"
        return ComponentHealth(name=name, state=HealthState.CRITICAL, message=failure)

    def check_database(self) -> ComponentHealth:
        connection_string = self.environ.get(self.environment.connection_string_variable)
        if not connection_string:
            return ComponentHealth(
                name="Database",
                state=HealthState.WARNING,
                message="Connection string not configured",
            )
        try:
            endpoint = database_endpoint(
                connection_string, self.environment.default_database_port
            )
        except ValueError:
            endpoint = None
        if endpoint is None:
            return ComponentHealth(
                name="Database",
                state=HealthState.CRITICAL,
                message="Connection string does not specify a valid host and port",
            )
        host, port = endpoint
        failure = tcp_connect_failure(host, port, self.config.timeout_seconds)
        if failure:
            return ComponentHealth(
                name="Database", state=HealthState.CRITICAL, message=f"{host}:{port} {failure}"
            )
        return ComponentHealth(
            name="Database", state=HealthState.HEALTHY, message=f"{host}:{port} reachable"
        )

    def check_containers(self) -> ComponentHealth:
        try:
            result = self.runner.run(
                ["docker", "ps", "--format", "{{.Names}}"], timeout=self.config.timeout_seconds
            )
        except OSError as e:
            return ComponentHealth(
                name="Containers", state=HealthState.CRITICAL, message=f"Docker unavailable: {e}"
            )
        if not result.succeeded:
            return ComponentHealth(
                name="Containers",
                state=HealthState.CRITICAL,
                message=result.stderr.strip() or "docker ps failed",
            )
        running = {line.strip() for line in result.stdout.splitlines() if line.strip()}
        missing = [name for name in self.config.expected_containers if name not in running]
        if missing:
            return ComponentHealth(
                name="Containers",
                state=HealthState.CRITICAL,
                message=f"Not running: {', '.join(missing)}",
            )
        return ComponentHealth(
            name="Containers",
            state=HealthState.HEALTHY,
            message=f"{len(self.config.expected_containers)} containers running",
        )

    def check_certificate(self) -> ComponentHealth:
        cert_path = self.environ.get("SSL_CERT_PATH")
        if not cert_path or not Path(cert_path).is_file():
            return ComponentHealth(
                name="SSL", state=HealthState.WARNING, message="SSL certificate not found"
            )
        try:
            status = inspect_certificate(Path(cert_path))
        except ValueError as e:
            return ComponentHealth(name="SSL", state=HealthState.CRITICAL, message=str(e))
        if status.expired:
            return ComponentHealth(
                name="SSL",
                state=HealthState.CRITICAL,
                message=f"Certificate expired on {status.expires_at:%Y-%m-%d}",
            )
        if status.expires_within(self.environment.certificate_expiry_days):
            return ComponentHealth(
                name="SSL",
                state=HealthState.WARNING,
                message=f"Certificate expires in {int(status.days_remaining)} days",
            )
        return ComponentHealth(
            name="SSL",
            state=HealthState.HEALTHY,
            message=f"Certificate valid until {status.expires_at:%Y-%m-%d}",
        )
