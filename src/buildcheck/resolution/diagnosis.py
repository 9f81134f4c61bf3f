"""
Log diagnosis.

Pulls candidate error lines out of a free-text build log, classifies them and
runs them through the resolver. A diagnosis succeeds when the resolution
success rate exceeds the configured threshold.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from buildcheck.classification import ErrorClassifier
from buildcheck.domain.taxonomy import BuildError

from .base import CompilationResolutionResult
from .resolver import ErrorResolver

ERROR_LINE_MARKERS = ("error", "failed", "exception")


def extract_error_lines(text: str) -> list[str]:
    """Non-blank lines mentioning error, failed or exception (any case)."""
    lines = []
    for line in text.splitlines():
        lowered = line.lower()
        if line.strip() and any(marker in lowered for marker in ERROR_LINE_MARKERS):
            lines.append(line.strip())
    return lines


@dataclass(slots=True)
class DiagnosisResult:
    log_file: Path
    errors: list[BuildError]
    resolution: CompilationResolutionResult
    threshold: float
    report: str = ""

    @property
    def success_rate(self) -> float:
        return self.resolution.success_rate

    @property
    def success(self) -> bool:
        return self.success_rate > self.threshold

    def to_dict(self) -> dict[str, Any]:
        return {
            "logFile": str(self.log_file),
            "success": self.success,
            "threshold": self.threshold,
            "errors": [error.to_dict() for error in self.errors],
            "resolution": self.resolution.to_dict(),
        }


def diagnose_log(
    log_file: Path,
    classifier: ErrorClassifier,
    resolver: ErrorResolver,
    threshold: float = 0.5,
) -> DiagnosisResult:
    """Classify and resolve every error line of a log file.

    Raises:
        FileNotFoundError: If the log file does not exist
    """
    text = log_file.read_text(encoding="utf-8", errors="replace")
    errors = [classifier.classify(line, source=log_file.name) for line in extract_error_lines(text)]
    resolution = resolver.resolve(errors)
    result = DiagnosisResult(
        log_file=log_file, errors=errors, resolution=resolution, threshold=threshold
    )
    result.report = render_diagnosis_report(result)
    return result


def render_diagnosis_report(result: DiagnosisResult) -> str:
    resolution = result.resolution
    lines = [
        "=== ERROR DIAGNOSIS REPORT ===",
        f"Log file: {result.log_file}",
        f"Total errors: {resolution.total_errors}",
        f"Resolved: {len(resolution.resolved_errors)}",
        f"Unresolved: {len(resolution.unresolved_errors)}",
        f"Success rate: {resolution.success_rate:.1%}",
        f"Diagnosis: {'SUCCESS' if result.success else 'NEEDS ATTENTION'}",
        "",
        "Errors by category:",
    ]
    for category, category_result in resolution.category_results.items():
        lines.append(
            f"  {category}: {len(category_result.resolved_errors)} resolved, "
            f"{len(category_result.unresolved_errors)} unresolved"
        )
    if resolution.actions:
        lines.append("")
        lines.append("Resolution actions:")
        lines.extend(f"  - {action}" for action in resolution.actions)
    return "\n".join(lines)
