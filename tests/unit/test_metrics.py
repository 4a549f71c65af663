"""Unit tests for metrics collection."""

from src.spica_sync.observability.metrics import (
    LoggerBackend,
    MetricsCollector,
    get_global_collector,
)


class TestLoggerBackend:
    """Test LoggerBackend class."""

    def test_counters_with_sorted_tags(self):
        backend = LoggerBackend()

        backend.increment("requests", tags={"status": "200", "method": "GET"})
        backend.increment("requests", value=2, tags={"method": "GET", "status": "200"})
        backend.increment("plain")

        assert backend.get_summary()["counters"] == {
            "requests[method=GET,status=200]": 3,
            "plain": 1,
        }

    def test_timing_summary(self):
        backend = LoggerBackend()

        for value in (10.0, 30.0, 20.0):
            backend.timing("latency", value)

        assert backend.get_summary()["timings"]["latency"] == {
            "count": 3,
            "avg": 20.0,
            "min": 10.0,
            "max": 30.0,
        }

    def test_reset(self):
        backend = LoggerBackend()
        backend.increment("requests")
        backend.timing("latency", 1.0)

        backend.reset()

        assert backend.get_summary() == {"counters": {}, "timings": {}}


class TestMetricsCollector:
    """Test MetricsCollector class."""

    def test_count_request(self):
        collector = MetricsCollector()

        collector.count_request("target", "POST", 201)
        collector.count_request("target", "POST", "error")

        counters = collector.get_summary()["counters"]
        assert counters["instance_api_requests_total[instance=target,method=POST,status=201]"] == 1
        assert (
            counters["instance_api_requests_total[instance=target,method=POST,status=error]"] == 1
        )

    def test_request_latency(self):
        collector = MetricsCollector()

        collector.record_request_latency("source", "GET", 12.5)

        timings = collector.get_summary()["timings"]
        assert timings["instance_api_latency_ms[instance=source,method=GET]"]["max"] == 12.5

    def test_count_apply(self):
        collector = MetricsCollector()

        collector.count_apply("function", "insert", True)
        collector.count_apply("function", "insert", False)

        counters = collector.get_summary()["counters"]
        assert counters["sync_apply_total[action=insert,module=function,status=succeeded]"] == 1
        assert counters["sync_apply_total[action=insert,module=function,status=failed]"] == 1

    def test_global_collector_is_shared(self):
        assert get_global_collector() is get_global_collector()
