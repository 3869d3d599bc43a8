"""Local health and metrics endpoint."""

from .health import HealthServer, format_metrics

__all__ = ["HealthServer", "format_metrics"]
