"""Category-dispatched automated error resolution."""

from .base import (
    CategoryResolutionResult,
    CompilationResolutionResult,
    ResolutionStrategy,
    resolve_each,
)
from .diagnosis import DiagnosisResult, diagnose_log, extract_error_lines, render_diagnosis_report
from .registry import StrategyRegistry, default_registry
from .resolver import ErrorResolver

__all__ = [
    "CategoryResolutionResult",
    "CompilationResolutionResult",
    "DiagnosisResult",
    "ErrorResolver",
    "ResolutionStrategy",
    "StrategyRegistry",
    "default_registry",
    "diagnose_log",
    "extract_error_lines",
    "render_diagnosis_report",
    "resolve_each",
]
