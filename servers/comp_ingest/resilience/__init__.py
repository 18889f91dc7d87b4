"""Source health tracking for ingestion runs."""

from .health import HealthMonitor

__all__ = ["HealthMonitor"]
