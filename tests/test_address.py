"""Tests for address parsing and base names."""

import pytest

from ossresource.address import ObjectAddress, filename, parse_address
from ossresource.errors import MalformedAddress


class TestParseAddress:
    """Tests for parse_address()."""

    def test_bucket_and_key(self):
        addr = parse_address("oss://b/k")
        assert addr.scheme == "oss"
        assert addr.bucket == "b"
        assert addr.key == "k"
        assert addr.is_bucket_root is False

    def test_nested_key(self):
        addr = parse_address("oss://aliyun-test-bucket/dir/sub/file.txt")
        assert addr.bucket == "aliyun-test-bucket"
        assert addr.key == "dir/sub/file.txt"

    def test_bucket_without_trailing_slash(self):
        """oss://b addresses the bucket itself."""
        addr = parse_address("oss://aliyun-test-bucket")
        assert addr.bucket == "aliyun-test-bucket"
        assert addr.key == ""
        assert addr.is_bucket_root is True

    def test_bucket_with_trailing_slash(self):
        """oss://b/ addresses the bucket itself."""
        addr = parse_address("oss://aliyun-test-bucket/")
        assert addr.key == ""
        assert addr.is_bucket_root is True

    def test_only_one_leading_separator_is_stripped(self):
        addr = parse_address("oss://b//k")
        assert addr.key == "/k"
        assert addr.is_bucket_root is False

    def test_key_with_trailing_slash_is_an_object(self):
        addr = parse_address("oss://b/dir/")
        assert addr.key == "dir/"
        assert addr.is_bucket_root is False

    def test_missing_scheme(self):
        with pytest.raises(MalformedAddress):
            parse_address("aliyun-test-bucket/key")

    def test_empty_scheme(self):
        with pytest.raises(MalformedAddress):
            parse_address("://bucket/key")

    def test_missing_bucket(self):
        with pytest.raises(MalformedAddress, match="no bucket"):
            parse_address("oss://")

    def test_missing_bucket_with_key(self):
        with pytest.raises(MalformedAddress):
            parse_address("oss:///key")

    def test_expected_scheme_matches(self):
        assert parse_address("oss://b/k", scheme="oss").key == "k"

    def test_expected_scheme_mismatch(self):
        with pytest.raises(MalformedAddress, match="is not 'oss'"):
            parse_address("s3://b/k", scheme="oss")

    def test_key_too_long(self):
        with pytest.raises(MalformedAddress, match="too long"):
            parse_address("oss://b/" + "k" * 1025)

    def test_key_at_limit(self):
        addr = parse_address("oss://b/" + "k" * 1024)
        assert len(addr.key) == 1024

    def test_error_carries_uri(self):
        with pytest.raises(MalformedAddress) as exc_info:
            parse_address("oss://")
        assert exc_info.value.uri == "oss://"
        assert exc_info.value.code == "MalformedAddress"


class TestObjectAddress:
    """Tests for the ObjectAddress value type."""

    def test_uri_for_object(self):
        assert ObjectAddress("oss", "b", "a/b").uri == "oss://b/a/b"

    def test_uri_for_bucket_keeps_trailing_slash(self):
        assert ObjectAddress("oss", "aliyun-test-bucket").uri == "oss://aliyun-test-bucket/"

    def test_bucket_address_round_trips_through_uri(self):
        """oss://b and oss://b/ normalize to the same address."""
        assert parse_address("oss://b") == parse_address("oss://b/")

    def test_immutable(self):
        addr = ObjectAddress("oss", "b", "k")
        with pytest.raises(AttributeError):
            addr.key = "other"  # type: ignore[misc]

    def test_str_is_uri(self):
        assert str(ObjectAddress("oss", "b", "k")) == "oss://b/k"


class TestFilename:
    """Tests for filename()."""

    def test_object_filename(self):
        assert filename(parse_address("oss://aliyun-test-bucket/myfilekey")) == "myfilekey"

    def test_nested_object_filename(self):
        assert filename(parse_address("oss://b/dir/sub/report.csv")) == "report.csv"

    def test_bucket_filename_is_bucket_name(self):
        assert filename(parse_address("oss://aliyun-test-bucket/")) == "aliyun-test-bucket"

    def test_directory_like_key(self):
        assert filename(parse_address("oss://b/dir/")) == ""
