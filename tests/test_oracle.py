"""Tests for the existence oracle and store error translation."""

import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from ossresource.errors import NotFound, TransportFailure
from ossresource.oracle import ExistenceOracle, is_not_found
from ossresource.storage.memory import client_error


class TestIsNotFound:
    """Tests for is_not_found()."""

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NoSuchBucket", "NotFound"])
    def test_not_found_codes(self, code):
        assert is_not_found(client_error(code, "missing", "HeadObject"))

    def test_other_code(self):
        assert not is_not_found(client_error("AccessDenied", "no", "HeadObject"))

    def test_non_client_error(self):
        assert not is_not_found(ValueError("x"))


class TestWithMemoryStore:
    """Oracle answers against a real in-memory store."""

    def test_bucket_exists(self, store):
        oracle = ExistenceOracle(store)
        assert oracle.bucket_exists("aliyun-test-bucket") is True
        assert oracle.bucket_exists("other-bucket") is False

    def test_object_exists(self, store):
        oracle = ExistenceOracle(store)
        assert oracle.object_exists("aliyun-test-bucket", "myfilekey") is True
        assert oracle.object_exists("aliyun-test-bucket", "nope") is False

    def test_object_in_missing_bucket(self, store):
        assert ExistenceOracle(store).object_exists("other-bucket", "k") is False

    def test_metadata(self, store):
        meta = ExistenceOracle(store).metadata("aliyun-test-bucket", "myfilekey")
        assert meta.content_length == 4096

    def test_metadata_missing_object(self, store):
        with pytest.raises(NotFound, match="aliyun-test-bucket/nope"):
            ExistenceOracle(store).metadata("aliyun-test-bucket", "nope")

    def test_no_caching(self, store):
        """A write elsewhere is visible on the very next query."""
        oracle = ExistenceOracle(store)
        assert oracle.object_exists("aliyun-test-bucket", "late") is False
        store.put_object("aliyun-test-bucket", "late", io.BytesIO(b"x"))
        assert oracle.object_exists("aliyun-test-bucket", "late") is True

    def test_list_buckets(self, store):
        assert ExistenceOracle(store).list_buckets() == ["aliyun-test-bucket"]


class TestErrorTranslation:
    """Remote failures other than not-found become TransportFailure."""

    def test_bucket_exists_access_denied(self):
        store = MagicMock()
        store.bucket_exists.side_effect = client_error("AccessDenied", "no", "HeadBucket")
        with pytest.raises(TransportFailure, match="AccessDenied") as exc_info:
            ExistenceOracle(store).bucket_exists("b")
        assert isinstance(exc_info.value.__cause__, ClientError)

    def test_bucket_exists_not_found_error_is_false(self):
        store = MagicMock()
        store.bucket_exists.side_effect = client_error("NoSuchBucket", "gone", "HeadBucket")
        assert ExistenceOracle(store).bucket_exists("b") is False

    def test_object_exists_transport_error(self):
        store = MagicMock()
        store.head_object.side_effect = EndpointConnectionError(endpoint_url="http://x")
        with pytest.raises(TransportFailure):
            ExistenceOracle(store).object_exists("b", "k")

    def test_metadata_server_error(self):
        store = MagicMock()
        store.head_object.side_effect = client_error("InternalError", "oops", "HeadObject")
        with pytest.raises(TransportFailure) as exc_info:
            ExistenceOracle(store).metadata("b", "k")
        assert exc_info.value.uri == "b/k"

    def test_list_buckets_error(self):
        store = MagicMock()
        store.list_buckets.side_effect = client_error("AccessDenied", "no", "ListBuckets")
        with pytest.raises(TransportFailure):
            ExistenceOracle(store).list_buckets()

    def test_every_query_is_a_round_trip(self):
        store = MagicMock()
        store.bucket_exists.return_value = True
        oracle = ExistenceOracle(store)
        oracle.bucket_exists("b")
        oracle.bucket_exists("b")
        assert store.bucket_exists.call_count == 2
