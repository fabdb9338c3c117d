"""Tests for Prometheus metrics recording."""

from prometheus_client import REGISTRY

from ossresource import metrics
from ossresource.address import parse_address
from ossresource.oracle import ExistenceOracle
from ossresource.reader import open_object_stream


def _sample(name, labels=None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetrics:
    """Counters registered by init_metrics()."""

    def test_init_is_idempotent(self):
        metrics.init_metrics()
        counter = metrics.uploads_total
        metrics.init_metrics()
        assert metrics.uploads_total is counter

    def test_collectors_registered_with_prefix(self):
        metrics.init_metrics()
        names = {m.name for m in REGISTRY.collect()}
        assert "ossresource_uploads" in names
        assert "ossresource_store_requests" in names
        assert "ossresource_uploads_in_flight" in names

    def test_successful_upload_counted(self, make_resource):
        metrics.init_metrics()
        before_ok = _sample("ossresource_uploads_total", {"status": "ok"})
        before_bytes = _sample("ossresource_bytes_uploaded_total")
        with make_resource("oss://aliyun-test-bucket/counted").open_write_stream() as s:
            s.write(b"x" * 100)
        assert _sample("ossresource_uploads_total", {"status": "ok"}) == before_ok + 1
        assert _sample("ossresource_bytes_uploaded_total") == before_bytes + 100

    def test_download_bytes_counted(self, store, seed_data):
        metrics.init_metrics()
        before = _sample("ossresource_bytes_downloaded_total")
        addr = parse_address("oss://aliyun-test-bucket/myfilekey")
        with open_object_stream(store, addr) as stream:
            stream.read()
        assert _sample("ossresource_bytes_downloaded_total") == before + len(seed_data)

    def test_store_request_counted(self, store):
        metrics.init_metrics()
        labels = {"operation": "bucket_exists", "status": "ok"}
        before = _sample("ossresource_store_requests_total", labels)
        ExistenceOracle(store).bucket_exists("aliyun-test-bucket")
        assert _sample("ossresource_store_requests_total", labels) == before + 1

    def test_helpers_accept_zero_bytes(self):
        metrics.init_metrics()
        before = _sample("ossresource_uploads_total", {"status": "error"})
        metrics.record_upload("error", 0)
        metrics.record_download(0)
        assert _sample("ossresource_uploads_total", {"status": "error"}) == before + 1
