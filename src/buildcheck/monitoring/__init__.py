"""Monitoring configuration generation."""

from .setup import MonitoringConfigurator, MonitoringSetupResult, MonitoringStatus

__all__ = ["MonitoringConfigurator", "MonitoringSetupResult", "MonitoringStatus"]
