"""
Tests for the observability layer and structured logging.
"""

import pytest
from loguru import logger

from themecolor.services.observability import (
    MetricsCollector, PerformanceMetrics, performance_monitor, performance_tracked
)
from themecolor.utils.logging import StructuredLogger, get_logger


class TestMetricsCollector:
    """Test metrics recording and aggregation."""

    def _metric(self, name, duration, error=None):
        return PerformanceMetrics(
            operation_name=name, duration_ms=duration, memory_usage_mb=10.0,
            sample_count=0, bucket_count=0, timestamp=0.0, error=error,
        )

    def test_operation_stats(self, metrics_collector):
        for duration in (10.0, 20.0, 30.0):
            metrics_collector.record_performance(self._metric("median_cut", duration))
        stats = metrics_collector.get_operation_stats("median_cut")
        assert stats["total_calls"] == 3
        assert stats["error_count"] == 0
        assert stats["duration_stats"]["mean_ms"] == pytest.approx(20.0)
        assert stats["duration_stats"]["min_ms"] == pytest.approx(10.0)
        assert stats["duration_stats"]["max_ms"] == pytest.approx(30.0)

    def test_error_rate(self, metrics_collector):
        metrics_collector.record_performance(self._metric("pixel_sampling", 1.0))
        metrics_collector.record_performance(self._metric("pixel_sampling", 1.0, error="boom"))
        stats = metrics_collector.get_operation_stats("pixel_sampling")
        assert stats["error_rate"] == pytest.approx(0.5)

    def test_unknown_operation(self, metrics_collector):
        assert metrics_collector.get_operation_stats("nothing") == {}

    def test_recent_metrics_and_reset(self, metrics_collector):
        for i in range(5):
            metrics_collector.record_performance(self._metric(f"op{i}", float(i)))
        recent = metrics_collector.get_recent_metrics(limit=2)
        assert [m["operation_name"] for m in recent] == ["op3", "op4"]
        metrics_collector.reset()
        assert metrics_collector.get_recent_metrics() == []

    def test_history_is_bounded(self):
        collector = MetricsCollector(max_history=3)
        for i in range(10):
            collector.record_performance(self._metric("op", float(i)))
        assert len(collector.get_recent_metrics(limit=100)) == 3


class TestPerformanceMonitor:
    """Test the timing context manager and decorator."""

    def test_records_success(self, metrics_collector):
        with performance_monitor("stage", metrics_collector, sample_count=42):
            pass
        recent = metrics_collector.get_recent_metrics(limit=1)[0]
        assert recent["operation_name"] == "stage"
        assert recent["sample_count"] == 42
        assert recent["error"] is None
        assert recent["duration_ms"] >= 0.0

    def test_records_and_reraises_error(self, metrics_collector, log_records):
        with pytest.raises(RuntimeError):
            with performance_monitor("stage", metrics_collector):
                raise RuntimeError("stage failed")
        assert metrics_collector.get_recent_metrics(limit=1)[0]["error"] == "stage failed"
        assert any(r["level"].name == "ERROR" for r in log_records)

    def test_without_collector(self):
        with performance_monitor("stage"):
            value = 1
        assert value == 1

    def test_tracked_decorator(self, metrics_collector):
        @performance_tracked("double", collector=metrics_collector)
        def double(x):
            return 2 * x

        assert double(21) == 42
        assert double.__name__ == "double"
        assert metrics_collector.get_operation_stats("double")["total_calls"] == 1


class TestStructuredLogger:
    """Test the structured logger wrapper."""

    def test_get_logger_is_cached(self):
        assert get_logger() is get_logger()
        assert isinstance(get_logger(), StructuredLogger)

    def test_extra_fields_are_bound(self, log_records):
        get_logger().info("palette ready", {"colors": 5})
        record = log_records[-1]
        assert record["message"] == "palette ready"
        assert record["extra"]["colors"] == 5

    def test_plain_message(self, log_records):
        get_logger().warning("no extra")
        assert log_records[-1]["level"].name == "WARNING"

    def test_host_sinks_survive_configuration(self):
        """Creating a logger must not detach sinks the host application added"""
        received = []
        host_id = logger.add(lambda message: received.append(message.record["message"]), level="DEBUG")
        structured = StructuredLogger(level="DEBUG")
        try:
            structured.info("after configure")
            structured._configure_logger()
            structured.info("after reconfigure")
        finally:
            logger.remove(structured._handler_id)
            logger.remove(host_id)
        assert received == ["after configure", "after reconfigure"]

    def test_reconfigure_replaces_own_sink(self):
        structured = StructuredLogger(level="DEBUG")
        first_id = structured._handler_id
        structured._configure_logger()
        try:
            assert structured._handler_id != first_id
            with pytest.raises(ValueError):
                logger.remove(first_id)
        finally:
            logger.remove(structured._handler_id)
