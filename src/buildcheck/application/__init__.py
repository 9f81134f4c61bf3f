"""Application service layer exports."""

from .services import DiagnoseService, HealthService, ValidateService

__all__ = ["DiagnoseService", "HealthService", "ValidateService"]
