"""Error classification: text and exception triage into category x severity."""

from .classifier import ErrorClassifier
from .rules import ClassificationRules

__all__ = ["ClassificationRules", "ErrorClassifier"]
