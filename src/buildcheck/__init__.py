"""
BuildCheck - build validation and error resolution for .NET workspaces.
"""

__version__ = "0.1.0"

from .classification import ErrorClassifier
from .config import BuildCheckConfig
from .domain.taxonomy import BuildError, ErrorCategory, ErrorSeverity, ValidationStatus
from .orchestrator import OrchestrationResult, ValidationOrchestrator, ValidationTarget

__all__ = [
    "__version__",
    "BuildCheckConfig",
    "BuildError",
    "ErrorCategory",
    "ErrorClassifier",
    "ErrorSeverity",
    "OrchestrationResult",
    "ValidationOrchestrator",
    "ValidationStatus",
    "ValidationTarget",
]
