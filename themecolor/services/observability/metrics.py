"""
Observability metrics for the ThemeColor engine.

Timing and memory instrumentation for the expensive stages (pixel sampling
and median-cut quantization). Collectors are explicit objects owned by the
caller; engine results never depend on them.
"""

import time
import psutil
import threading
from collections import defaultdict, deque
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from functools import wraps
from typing import Dict, Any, Optional, List

import numpy as np
from loguru import logger

from themecolor.config import config


@dataclass
class PerformanceMetrics:
    """Performance metrics for one engine operation."""
    operation_name: str
    duration_ms: float
    memory_usage_mb: float
    sample_count: int
    bucket_count: int
    timestamp: float
    error: Optional[str] = None


class MetricsCollector:
    """Thread-safe metrics collector for engine operations."""

    def __init__(self, max_history: int = 1000):
        self.max_history = max_history
        self._lock = threading.Lock()
        self._metrics_history: deque = deque(maxlen=max_history)
        self._operation_counts = defaultdict(int)
        self._error_counts = defaultdict(int)
        self._durations: Dict[str, deque] = defaultdict(lambda: deque(maxlen=100))

    def record_performance(self, metrics: PerformanceMetrics) -> None:
        """Record performance metrics for an operation."""
        with self._lock:
            self._metrics_history.append(metrics)
            self._operation_counts[metrics.operation_name] += 1

            if metrics.error:
                self._error_counts[metrics.operation_name] += 1

            self._durations[metrics.operation_name].append(metrics.duration_ms)

    def get_operation_stats(self, operation_name: str) -> Dict[str, Any]:
        """Get aggregated statistics for a specific operation."""
        with self._lock:
            durations = list(self._durations.get(operation_name, ()))
            if not durations:
                return {}

            return {
                'operation_name': operation_name,
                'total_calls': self._operation_counts[operation_name],
                'error_count': self._error_counts[operation_name],
                'error_rate': self._error_counts[operation_name] / max(1, self._operation_counts[operation_name]),
                'duration_stats': {
                    'mean_ms': float(np.mean(durations)),
                    'median_ms': float(np.median(durations)),
                    'p95_ms': float(np.percentile(durations, 95)),
                    'min_ms': float(np.min(durations)),
                    'max_ms': float(np.max(durations))
                }
            }

    def get_recent_metrics(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Get the most recent performance metrics."""
        with self._lock:
            recent = list(self._metrics_history)[-limit:]
            return [asdict(metric) for metric in recent]

    def reset(self) -> None:
        with self._lock:
            self._metrics_history.clear()
            self._operation_counts.clear()
            self._error_counts.clear()
            self._durations.clear()


def _rss_mb() -> float:
    return psutil.Process().memory_info().rss / 1024 / 1024


@contextmanager
def performance_monitor(operation_name: str,
                        collector: Optional[MetricsCollector] = None,
                        sample_count: int = 0,
                        bucket_count: int = 0):
    """Context manager timing an operation; logs always, records when a collector is given."""
    start_time = time.perf_counter()
    start_memory = _rss_mb()

    error_msg = None

    try:
        yield
    except Exception as e:
        error_msg = str(e)
        raise
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        metrics = PerformanceMetrics(
            operation_name=operation_name,
            duration_ms=duration_ms,
            memory_usage_mb=max(_rss_mb(), start_memory),
            sample_count=sample_count,
            bucket_count=bucket_count,
            timestamp=time.time(),
            error=error_msg
        )

        if collector is not None and config.METRICS_ENABLED:
            collector.record_performance(metrics)

        if error_msg:
            logger.error(f"Operation {operation_name} failed after {duration_ms:.1f}ms: {error_msg}")
        else:
            logger.debug(f"Operation {operation_name} completed in {duration_ms:.1f}ms "
                         f"(memory: {metrics.memory_usage_mb:.1f}MB)")


def performance_tracked(operation_name: str, collector: Optional[MetricsCollector] = None):
    """Decorator for automatically tracking function performance."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            with performance_monitor(operation_name, collector=collector):
                return func(*args, **kwargs)
        return wrapper
    return decorator
