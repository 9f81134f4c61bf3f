"""
Configuration models.

Loaded from ``.buildcheck/config.json`` in the workspace. JSON keys are
camelCase; Python attributes are snake_case and either spelling is accepted.
Every section has defaults matching a conventional .NET solution layout, so an
absent file is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Section(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ProjectsConfig(_Section):
    """Project discovery and build settings"""

    pattern: str = "*.csproj"
    excluded_projects: list[str] = Field(default_factory=list)
    skip_directories: list[str] = Field(
        default_factory=lambda: ["bin", "obj", "node_modules", ".git", ".buildcheck"]
    )
    central_packages_file: str = "Directory.Packages.props"
    target_framework: str | None = "net8.0"
    build_command: list[str] = Field(
        default_factory=lambda: ["dotnet", "build", "{project}", "--nologo"]
    )
    restore_command: list[str] = Field(default_factory=lambda: ["dotnet", "restore", "{project}"])
    build_timeout_seconds: float = 600.0


class DockerConfig(_Section):
    """Container build diagnostics settings"""

    dockerfile_pattern: str = "Dockerfile*"
    compose_pattern: str = "docker-compose*.yml"
    build_test: bool = True
    check_timeout_seconds: float = 10.0
    build_timeout_seconds: float = 600.0
    max_run_instructions: int = 5


class ConfigFileRule(_Section):
    """Structural requirements for JSON configuration files matching a glob"""

    pattern: str
    required_sections: list[str] = Field(default_factory=list)
    required_keys: dict[str, list[str]] = Field(default_factory=dict)


def _default_required_variables() -> dict[str, list[str]]:
    return {
        "Database": [
            "ConnectionStrings__DefaultConnection",
            "POSTGRES_DB",
            "POSTGRES_USER",
            "POSTGRES_PASSWORD",
        ],
        "Authentication": ["Jwt__Key", "Jwt__Issuer", "Jwt__Audience"],
        "Networking": ["SERVER_IP", "DOMAIN", "ASPNETCORE_URLS"],
        "SSL": ["SSL_CERT_PATH", "SSL_KEY_PATH"],
    }


def _default_config_files() -> list[ConfigFileRule]:
    return [ConfigFileRule(pattern="**/appsettings.json", required_sections=["Logging"])]


class EnvironmentConfig(_Section):
    """Runtime environment validation settings"""

    required_variables: dict[str, list[str]] = Field(default_factory=_default_required_variables)
    connection_string_variable: str = "ConnectionStrings__DefaultConnection"
    jwt_key_variable: str = "Jwt__Key"
    jwt_min_key_length: int = 32
    certificate_expiry_days: int = 30
    check_database: bool = True
    check_timeout_seconds: float = 5.0
    default_database_port: int = 5432
    config_files: list[ConfigFileRule] = Field(default_factory=_default_config_files)


class TestingConfig(_Section):
    """Gated test execution settings"""

    project_pattern: str = "*Tests.csproj"
    tier_markers: dict[str, str] = Field(
        default_factory=lambda: {
            "Unit": "UnitTests",
            "Integration": "IntegrationTests",
            "Component": "ComponentTests",
        }
    )
    test_command: list[str] = Field(
        default_factory=lambda: [
            "dotnet",
            "test",
            "{project}",
            "--no-build",
            "--verbosity",
            "normal",
        ]
    )
    timeout_seconds: float = 1800.0
    max_workers: int = Field(default=1, ge=1)


class HealthConfig(_Section):
    """Live health check settings"""

    api_url: str = "http://{SERVER_IP}:{API_PORT}"
    web_url: str = "http://{SERVER_IP}:{WEB_PORT}"
    health_path: str = "/health"
    default_host: str = "localhost"
    default_api_port: int = 5000
    default_web_port: int = 5001
    timeout_seconds: float = 10.0
    retries: int = Field(default=2, ge=0)
    backoff_base_seconds: float = 0.5
    backoff_max_seconds: float = 5.0
    expected_containers: list[str] = Field(default_factory=list)


class ResolutionConfig(_Section):
    """Automated resolution policy"""

    enabled: bool = True
    success_threshold: float = Field(default=0.5, ge=0.0, le=1.0)


class MonitoringConfig(_Section):
    """Monitoring configuration output"""

    output_dir: str = ".buildcheck/monitoring"
    health_interval_seconds: int = 30
    performance_sample_seconds: int = 60
    log_retention_days: int = 14
    alert_channels: list[str] = Field(default_factory=lambda: ["console"])


class RuntimeConfig(_Section):
    """Request-time exception handling"""

    environment: str = "Development"
    production_names: list[str] = Field(default_factory=lambda: ["production", "prod"])

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in {name.lower() for name in self.production_names}


class BuildCheckConfig(_Section):
    """Root configuration"""

    projects: ProjectsConfig = Field(default_factory=ProjectsConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)
    testing: TestingConfig = Field(default_factory=TestingConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)
    resolution: ResolutionConfig = Field(default_factory=ResolutionConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
