"""
Classification Rules

The lookup tables the classifier runs on. They are plain data bundled in an
immutable ClassificationRules object so callers can construct and inject their
own tables instead of patching module state.

Pattern ordering: ``ordered_patterns`` scans longest pattern first. Longer
substrings are more specific ("version conflict" before "package",
"connection refused" before "network"), so the first hit is deterministic and
never shadowed by a generic word. Ties keep table order.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from buildcheck.domain.taxonomy import ErrorCategory, ErrorSeverity

C = ErrorCategory
S = ErrorSeverity

DEFAULT_PATTERNS: tuple[tuple[str, ErrorCategory], ...] = (
    # Package management
    ("package", C.PACKAGE_REFERENCE),
    ("nuget", C.PACKAGE_REFERENCE),
    ("version conflict", C.PACKAGE_REFERENCE),
    ("restore failed", C.PACKAGE_REFERENCE),
    # Project graph
    ("project reference", C.PROJECT_REFERENCE),
    ("circular dependency", C.PROJECT_REFERENCE),
    ("assembly reference", C.PROJECT_REFERENCE),
    # Compiler
    ("syntax error", C.COMPILATION_ERROR),
    ("expected", C.COMPILATION_ERROR),
    ("missing using", C.COMPILATION_ERROR),
    ("type or namespace name", C.COMPILATION_ERROR),
    ("using directive", C.COMPILATION_ERROR),
    ("namespace", C.COMPILATION_ERROR),
    # Framework
    ("target framework", C.FRAMEWORK_COMPATIBILITY),
    ("framework version", C.FRAMEWORK_COMPATIBILITY),
    ("net8.0", C.FRAMEWORK_COMPATIBILITY),
    # Containers
    ("dockerfile", C.DOCKER_BUILD),
    ("copy failed", C.DOCKER_BUILD),
    ("no such file", C.DOCKER_BUILD),
    ("image build", C.DOCKER_BUILD),
    # Database
    ("connection string", C.DATABASE_CONNECTIVITY),
    ("postgres", C.DATABASE_CONNECTIVITY),
    ("database", C.DATABASE_CONNECTIVITY),
    ("sql", C.DATABASE_CONNECTIVITY),
    # Authentication
    ("jwt", C.AUTHENTICATION),
    ("unauthorized", C.AUTHENTICATION),
    ("token", C.AUTHENTICATION),
    ("authentication", C.AUTHENTICATION),
    # Network
    ("timeout", C.NETWORK_CONNECTIVITY),
    ("network", C.NETWORK_CONNECTIVITY),
    ("connection refused", C.NETWORK_CONNECTIVITY),
    ("httprequest", C.NETWORK_CONNECTIVITY),
    # Environment and configuration
    ("environment variable", C.ENVIRONMENT_CONFIGURATION),
    ("ssl", C.ENVIRONMENT_CONFIGURATION),
    ("appsettings", C.CONFIGURATION_ERROR),
    ("configuration", C.CONFIGURATION_ERROR),
)

# MSBuild diagnostic code prefixes; checked in order before any text pattern.
DEFAULT_DIAGNOSTIC_PREFIXES: tuple[tuple[str, ErrorCategory], ...] = (
    ("NETSDK", C.FRAMEWORK_COMPATIBILITY),
    ("CS", C.COMPILATION_ERROR),
    ("NU", C.PACKAGE_REFERENCE),
)

# Checked in order when no pattern matched.
DEFAULT_FALLBACKS: tuple[tuple[tuple[str, ...], ErrorCategory], ...] = (
    (("reference", "assembly"), C.PROJECT_REFERENCE),
    (("package", "nuget"), C.PACKAGE_REFERENCE),
    (("syntax", "expected"), C.COMPILATION_ERROR),
    (("framework", "target"), C.FRAMEWORK_COMPATIBILITY),
)

# Checked from most to least severe; first keyword hit decides.
DEFAULT_SEVERITY_KEYWORDS: tuple[tuple[ErrorSeverity, tuple[str, ...]], ...] = (
    (S.CRITICAL, ("fatal", "critical", "circular dependency", "missing assembly")),
    (S.HIGH, ("error", "failed", "cannot resolve", "not found")),
    (S.MEDIUM, ("warning", "deprecated")),
)

DEFAULT_CATEGORY_SEVERITY: dict[ErrorCategory, ErrorSeverity] = {
    C.COMPILATION_ERROR: S.HIGH,
    C.PACKAGE_REFERENCE: S.HIGH,
    C.PROJECT_REFERENCE: S.CRITICAL,
    C.FRAMEWORK_COMPATIBILITY: S.HIGH,
    C.DOCKER_BUILD: S.HIGH,
    C.DATABASE_CONNECTIVITY: S.CRITICAL,
    C.AUTHENTICATION: S.HIGH,
    C.NETWORK_CONNECTIVITY: S.HIGH,
    C.ENVIRONMENT_CONFIGURATION: S.MEDIUM,
    C.CONFIGURATION_ERROR: S.MEDIUM,
    C.RUNTIME_EXCEPTION: S.MEDIUM,
    C.SYSTEM_ERROR: S.CRITICAL,
    C.UNKNOWN: S.LOW,
}

# Severity of exceptions caught while serving requests.
DEFAULT_EXCEPTION_SEVERITY: dict[ErrorCategory, ErrorSeverity] = {
    C.AUTHENTICATION: S.HIGH,
    C.DATABASE_CONNECTIVITY: S.CRITICAL,
    C.NETWORK_CONNECTIVITY: S.HIGH,
    C.CONFIGURATION_ERROR: S.HIGH,
    C.ENVIRONMENT_CONFIGURATION: S.MEDIUM,
}

DEFAULT_RESOLUTION_HINTS: dict[ErrorCategory, str] = {
    C.PACKAGE_REFERENCE: (
        "Check Directory.Packages.props for version conflicts and update package references"
    ),
    C.PROJECT_REFERENCE: "Verify project reference paths and resolve circular dependencies",
    C.COMPILATION_ERROR: "Review syntax errors and add missing using statements",
    C.FRAMEWORK_COMPATIBILITY: "Ensure all projects target the same framework version",
    C.DOCKER_BUILD: "Check Dockerfile paths and build context configuration",
    C.DATABASE_CONNECTIVITY: "Verify database connection string and server availability",
    C.AUTHENTICATION: "Check JWT configuration and token validation settings",
    C.NETWORK_CONNECTIVITY: "Verify network connectivity and firewall settings",
    C.ENVIRONMENT_CONFIGURATION: "Check environment variables and configuration files",
    C.CONFIGURATION_ERROR: "Review appsettings files for missing or invalid sections",
    C.RUNTIME_EXCEPTION: "Inspect the exception details and application logs",
    C.SYSTEM_ERROR: "Re-run with --verbose and inspect the validation tool logs",
    C.UNKNOWN: "Manual investigation required",
}


@dataclass(frozen=True, slots=True)
class ClassificationRules:
    """Tables consumed by ErrorClassifier"""

    patterns: tuple[tuple[str, ErrorCategory], ...] = DEFAULT_PATTERNS
    fallbacks: tuple[tuple[tuple[str, ...], ErrorCategory], ...] = DEFAULT_FALLBACKS
    diagnostic_prefixes: tuple[tuple[str, ErrorCategory], ...] = DEFAULT_DIAGNOSTIC_PREFIXES
    severity_keywords: tuple[tuple[ErrorSeverity, tuple[str, ...]], ...] = (
        DEFAULT_SEVERITY_KEYWORDS
    )
    category_severity: Mapping[ErrorCategory, ErrorSeverity] = field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_SEVERITY)
    )
    exception_severity: Mapping[ErrorCategory, ErrorSeverity] = field(
        default_factory=lambda: dict(DEFAULT_EXCEPTION_SEVERITY)
    )
    resolution_hints: Mapping[ErrorCategory, str] = field(
        default_factory=lambda: dict(DEFAULT_RESOLUTION_HINTS)
    )

    def ordered_patterns(self) -> list[tuple[str, ErrorCategory]]:
        """Patterns longest first; sorted() is stable so ties keep table order."""
        return sorted(self.patterns, key=lambda entry: len(entry[0]), reverse=True)
