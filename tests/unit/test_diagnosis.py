"""
Unit tests for build log diagnosis
"""

import pytest

from buildcheck.domain.taxonomy import ErrorCategory
from buildcheck.resolution import (
    ErrorResolver,
    StrategyRegistry,
    diagnose_log,
    extract_error_lines,
    resolve_each,
)


class MarkerStrategy:
    """Resolves Unknown errors whose line mentions 'fixable'"""

    category = ErrorCategory.UNKNOWN

    def resolve(self, errors):
        return resolve_each(
            self.category,
            errors,
            lambda error: "patched" if "fixable" in error.message else None,
        )


def _write_log(path, resolved, unresolved):
    lines = ["Build started", ""]
    lines += [f"ERROR step {i} fixable" for i in range(resolved)]
    lines += [f"step {i} FAILED badly" for i in range(unresolved)]
    lines.append("Build finished")
    path.write_text("\n".join(lines))
    return path


@pytest.fixture
def resolver():
    return ErrorResolver(StrategyRegistry([MarkerStrategy()]))


class TestExtractErrorLines:
    def test_markers_are_case_insensitive(self):
        text = "ok\nError: one\n  Unhandled EXCEPTION in worker  \nrestore Failed\n\n"

        assert extract_error_lines(text) == [
            "Error: one",
            "Unhandled EXCEPTION in worker",
            "restore Failed",
        ]

    def test_clean_log_has_no_lines(self):
        assert extract_error_lines("Build succeeded.\n0 Warning(s)\n") == []


class TestDiagnoseLog:
    """Diagnosis succeeds when the resolution rate exceeds the threshold"""

    def test_majority_resolved_succeeds(self, tmp_path, classifier, resolver):
        log = _write_log(tmp_path / "build.log", resolved=6, unresolved=4)

        result = diagnose_log(log, classifier, resolver)

        assert len(result.errors) == 10
        assert result.success_rate == pytest.approx(0.6)
        assert result.success is True
        assert "SUCCESS" in result.report

    def test_minority_resolved_fails(self, tmp_path, classifier, resolver):
        log = _write_log(tmp_path / "build.log", resolved=4, unresolved=6)

        result = diagnose_log(log, classifier, resolver)

        assert result.success_rate == pytest.approx(0.4)
        assert result.success is False
        assert "NEEDS ATTENTION" in result.report

    def test_exactly_threshold_is_not_success(self, tmp_path, classifier, resolver):
        log = _write_log(tmp_path / "build.log", resolved=5, unresolved=5)

        assert diagnose_log(log, classifier, resolver).success is False

    def test_custom_threshold(self, tmp_path, classifier, resolver):
        log = _write_log(tmp_path / "build.log", resolved=4, unresolved=6)

        assert diagnose_log(log, classifier, resolver, threshold=0.3).success is True

    def test_clean_log_succeeds(self, tmp_path, classifier, resolver):
        log = tmp_path / "build.log"
        log.write_text("Build succeeded.\n")

        result = diagnose_log(log, classifier, resolver)

        assert result.errors == []
        assert result.success is True

    def test_report_layout(self, tmp_path, classifier, resolver):
        log = _write_log(tmp_path / "build.log", resolved=1, unresolved=1)

        report = diagnose_log(log, classifier, resolver).report

        assert report.startswith("=== ERROR DIAGNOSIS REPORT ===")
        assert "Total errors: 2" in report
        assert "Unknown: 1 resolved, 1 unresolved" in report
        assert "  - patched" in report

    def test_missing_log_raises(self, tmp_path, classifier, resolver):
        with pytest.raises(FileNotFoundError):
            diagnose_log(tmp_path / "absent.log", classifier, resolver)
