"""Service modules"""
from .event_processor import EventProcessor
from .monitor import HealthMonitor, HealthStatus
from .reporter import AccountReporter

__all__ = ["AccountReporter", "EventProcessor", "HealthMonitor", "HealthStatus"]
