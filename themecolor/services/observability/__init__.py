"""
Observability module for the ThemeColor engine.

Timing, memory and error instrumentation for palette extraction.
"""

from .metrics import (
    PerformanceMetrics,
    MetricsCollector,
    performance_monitor,
    performance_tracked,
)

__all__ = [
    'PerformanceMetrics',
    'MetricsCollector',
    'performance_monitor',
    'performance_tracked',
]
