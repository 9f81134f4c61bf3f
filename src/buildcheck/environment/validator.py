"""
Environment Validator

Per-component checks of the runtime environment a deployment needs: required
variables, database reachability, JWT settings, listener URLs, TLS material
and JSON configuration files. Each component reports its own status; the
aggregate escalates them.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from buildcheck.classification import ErrorClassifier
from buildcheck.config import ConfigFileRule, EnvironmentConfig
from buildcheck.domain.status import escalate, status_from_errors
from buildcheck.domain.taxonomy import BuildError, ErrorCategory, ErrorSeverity, ValidationStatus

from .certificates import inspect_certificate
from .network import database_endpoint, tcp_connect_failure

logger = logging.getLogger(__name__)

_SKIPPED_DIRS = frozenset({"bin", "obj", "node_modules"})


@dataclass(slots=True)
class ComponentValidationResult:
    component: str
    status: ValidationStatus = ValidationStatus.SKIPPED
    errors: list[BuildError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    validated_items: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "status": self.status.value,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": list(self.warnings),
            "validatedItems": list(self.validated_items),
        }


@dataclass(slots=True)
class EnvironmentValidationResult:
    components: dict[str, ComponentValidationResult] = field(default_factory=dict)

    @property
    def status(self) -> ValidationStatus:
        return escalate(component.status for component in self.components.values())

    def all_errors(self) -> list[BuildError]:
        return [e for component in self.components.values() for e in component.errors]

    def all_warnings(self) -> list[str]:
        return [w for component in self.components.values() for w in component.warnings]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "components": [component.to_dict() for component in self.components.values()],
        }


ComponentCheck = Callable[[ComponentValidationResult], None]


class EnvironmentValidator:
    """Validate environment variables, TLS material and configuration files.

    Attributes:
        workspace: Root searched for configuration files
        config: Environment section of the configuration
        classifier: Used to build errors with hints
        environ: Variables to validate (defaults to the process environment)
        now: Clock for certificate expiry checks
    """

    def __init__(
        self,
        workspace: Path,
        config: EnvironmentConfig,
        classifier: ErrorClassifier,
        environ: Mapping[str, str] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.workspace = workspace
        self.config = config
        self.classifier = classifier
        self.environ = environ if environ is not None else dict(os.environ)
        self.now = now

    def validate(self) -> EnvironmentValidationResult:
        result = EnvironmentValidationResult()
        checks: dict[str, ComponentCheck] = {
            "Database": self.validate_database,
            "Authentication": self.validate_authentication,
            "Networking": self.validate_networking,
            "SSL": self.validate_ssl,
            "ConfigurationFiles": self.validate_config_files,
        }
        for name, check in checks.items():
            result.components[name] = self._run_component(name, check)
        return result

    def _run_component(self, name: str, check: ComponentCheck) -> ComponentValidationResult:
        component = ComponentValidationResult(component=name)
        try:
            check(component)
        except Exception as e:
            logger.exception("%s environment validation failed", name)
            component.errors.append(
                self.classifier.make_error(
                    ErrorCategory.SYSTEM_ERROR,
                    f"{name} validation failed: {e}",
                    source="Environment",
                    severity=ErrorSeverity.CRITICAL,
                )
            )
        component.status = status_from_errors(component.errors)
        return component

    def _error(
        self,
        component: ComponentValidationResult,
        category: ErrorCategory,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        **data: Any,
    ) -> None:
        component.errors.append(
            self.classifier.make_error(
                category, message, source=component.component, severity=severity, **data
            )
        )

    def _require_variables(self, component: ComponentValidationResult) -> None:
        for variable in self.config.required_variables.get(component.component, []):
            if self.environ.get(variable):
                component.validated_items.append(f"{variable} is set")
            else:
                self._error(
                    component,
                    ErrorCategory.ENVIRONMENT_CONFIGURATION,
                    f"Required environment variable not set: {variable} ({component.component})",
                    variable=variable,
                )

    def validate_database(self, component: ComponentValidationResult) -> None:
        self._require_variables(component)
        connection_string = self.environ.get(self.config.connection_string_variable)
        if not connection_string:
            return

        try:
            endpoint = database_endpoint(connection_string, self.config.default_database_port)
        except ValueError:
            endpoint = None
        if endpoint is None:
            self._error(
                component,
                ErrorCategory.CONFIGURATION_ERROR,
                "Connection string does not specify a valid host and port",
            )
            return

        if not self.config.check_database:
            return
        host, port = endpoint
        failure = tcp_connect_failure(host, port, self.config.check_timeout_seconds)
        if failure is None:
            component.validated_items.append(f"Database reachable at {host}:{port}")
        else:
            self._error(
                component,
                ErrorCategory.DATABASE_CONNECTIVITY,
                f"Database not reachable at {host}:{port}: {failure}",
                severity=ErrorSeverity.CRITICAL,
            )

    def validate_authentication(self, component: ComponentValidationResult) -> None:
        self._require_variables(component)
        key = self.environ.get(self.config.jwt_key_variable)
        if key and len(key) < self.config.jwt_min_key_length:
            self._error(
                component,
                ErrorCategory.AUTHENTICATION,
                f"JWT key must be at least {self.config.jwt_min_key_length} characters",
            )

    def validate_networking(self, component: ComponentValidationResult) -> None:
        self._require_variables(component)
        urls = self.environ.get("ASPNETCORE_URLS", "")
        for url in filter(None, (part.strip() for part in urls.split(";"))):
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                self._error(
                    component,
                    ErrorCategory.CONFIGURATION_ERROR,
                    f"Invalid URL in ASPNETCORE_URLS: {url}",
                )

    def validate_ssl(self, component: ComponentValidationResult) -> None:
        self._require_variables(component)
        cert_path = self.environ.get("SSL_CERT_PATH")
        key_path = self.environ.get("SSL_KEY_PATH")

        if cert_path:
            path = Path(cert_path)
            if not path.is_file():
                self._error(
                    component,
                    ErrorCategory.ENVIRONMENT_CONFIGURATION,
                    f"SSL certificate file not found: {cert_path}",
                )
            else:
                self._check_certificate(component, path)

        if key_path and not Path(key_path).is_file():
            self._error(
                component,
                ErrorCategory.ENVIRONMENT_CONFIGURATION,
                f"SSL key file not found: {key_path}",
            )

    def _check_certificate(self, component: ComponentValidationResult, path: Path) -> None:
        try:
            status = inspect_certificate(path, now=self.now() if self.now else None)
        except ValueError as e:
            self._error(
                component,
                ErrorCategory.ENVIRONMENT_CONFIGURATION,
                f"SSL certificate validation failed: {e}",
            )
            return

        threshold = self.config.certificate_expiry_days
        if status.expired:
            self._error(
                component,
                ErrorCategory.ENVIRONMENT_CONFIGURATION,
                f"SSL certificate expired on {status.expires_at:%Y-%m-%d}",
                severity=ErrorSeverity.CRITICAL,
            )
        elif status.expires_within(threshold):
            self._error(
                component,
                ErrorCategory.ENVIRONMENT_CONFIGURATION,
                f"SSL certificate validation failed: certificate expires within {threshold} days "
                f"({status.expires_at:%Y-%m-%d})",
            )
        else:
            component.validated_items.append(
                f"SSL certificate valid until {status.expires_at:%Y-%m-%d}"
            )

    def validate_config_files(self, component: ComponentValidationResult) -> None:
        for rule in self.config.config_files:
            matches = [
                path
                for path in sorted(self.workspace.glob(rule.pattern))
                if not _SKIPPED_DIRS.intersection(path.relative_to(self.workspace).parts)
            ]
            if not matches:
                component.warnings.append(f"No configuration files match {rule.pattern}")
            for path in matches:
                self._check_config_file(component, path, rule)

    def _check_config_file(
        self, component: ComponentValidationResult, path: Path, rule: ConfigFileRule
    ) -> None:
        name = path.relative_to(self.workspace).as_posix()
        try:
            document = json.loads(path.read_text(encoding="utf-8-sig"))
        except json.JSONDecodeError as e:
            self._error(
                component,
                ErrorCategory.CONFIGURATION_ERROR,
                f"Invalid JSON in {name}: {e}",
                config_file=str(path),
            )
            return
        if not isinstance(document, dict):
            self._error(
                component,
                ErrorCategory.CONFIGURATION_ERROR,
                f"Configuration root must be an object: {name}",
                config_file=str(path),
            )
            return

        for section in rule.required_sections:
            if section not in document:
                self._error(
                    component,
                    ErrorCategory.CONFIGURATION_ERROR,
                    f"Missing required section '{section}' in {name}",
                    config_file=str(path),
                    missing_section=section,
                )

        for section, keys in rule.required_keys.items():
            values = document.get(section)
            if not isinstance(values, dict):
                continue
            for key in keys:
                if key not in values:
                    self._error(
                        component,
                        ErrorCategory.CONFIGURATION_ERROR,
                        f"Missing required key '{section}:{key}' in {name}",
                        config_file=str(path),
                    )
        component.validated_items.append(f"{name} is valid JSON")
