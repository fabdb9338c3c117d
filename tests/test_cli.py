"""Tests for the ossresource CLI."""

import io
import logging
import os

import pytest
import yaml

from ossresource.cli import main, parse_args, run
from ossresource.errors import NotFound, ResourceError, UploadFailure
from ossresource.executor import UploadExecutor
from ossresource.resolver import OssProtocolResolver
from ossresource.storage.memory import MemoryObjectStore


@pytest.fixture
def resolver(store):
    with OssProtocolResolver(store, UploadExecutor(max_workers=2)) as r:
        yield r


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseArgs:
    """Tests for parse_args()."""

    def test_defaults(self):
        args = parse_args(["stat", "oss://b/k"])
        assert args.config is None
        assert args.log_level is None
        assert args.command == "stat"
        assert args.uri == "oss://b/k"

    def test_put_file_optional(self):
        assert parse_args(["put", "oss://b/k"]).file is None
        assert str(parse_args(["put", "oss://b/k", "x.bin"]).file) == "x.bin"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestRun:
    """Tests for run() against an in-memory store."""

    def test_stat_object(self, resolver):
        out = io.StringIO()
        run(parse_args(["stat", "oss://aliyun-test-bucket/myfilekey"]), resolver, stdout=out)
        lines = out.getvalue().splitlines()
        assert "kind: object" in lines
        assert "exists: true" in lines
        assert "content_length: 4096" in lines

    def test_stat_bucket(self, resolver):
        out = io.StringIO()
        run(parse_args(["stat", "oss://aliyun-test-bucket"]), resolver, stdout=out)
        lines = out.getvalue().splitlines()
        assert "uri: oss://aliyun-test-bucket/" in lines
        assert "kind: bucket" in lines
        assert not any(line.startswith("content_length") for line in lines)

    def test_stat_missing(self, resolver):
        out = io.StringIO()
        run(parse_args(["stat", "oss://aliyun-test-bucket/nope"]), resolver, stdout=out)
        assert "exists: false" in out.getvalue()

    def test_cat(self, resolver, seed_data):
        out = io.BytesIO()
        run(parse_args(["cat", "oss://aliyun-test-bucket/myfilekey"]), resolver, stdout=out)
        assert out.getvalue() == seed_data

    def test_cat_missing(self, resolver):
        with pytest.raises(NotFound):
            run(parse_args(["cat", "oss://aliyun-test-bucket/nope"]), resolver, stdout=io.BytesIO())

    def test_put_from_stdin(self, resolver, store):
        data = b"piped in" * 1000
        run(parse_args(["put", "oss://aliyun-test-bucket/piped"]), resolver, stdin=io.BytesIO(data))
        assert store.get_object("aliyun-test-bucket", "piped").read() == data

    def test_put_from_file(self, resolver, store, tmp_path):
        src = tmp_path / "payload.bin"
        src.write_bytes(b"from a file")
        run(parse_args(["put", "oss://aliyun-test-bucket/f", str(src)]), resolver)
        assert store.get_object("aliyun-test-bucket", "f").read() == b"from a file"

    def test_put_store_failure_is_upload_failure(self, tmp_path, executor):
        store = MemoryObjectStore(max_size_bytes=2000)
        store.create_bucket("b")
        resolver = OssProtocolResolver(store, executor, buffer_size=512)
        src = tmp_path / "big.bin"
        src.write_bytes(os.urandom(200_000))
        with pytest.raises(UploadFailure, match="oss://b/k"):
            run(parse_args(["put", "oss://b/k", str(src)]), resolver)

    def test_ls(self, resolver, store):
        store.create_bucket("another-bucket")
        out = io.StringIO()
        run(parse_args(["ls"]), resolver, stdout=out)
        assert out.getvalue().splitlines() == [
            "oss://aliyun-test-bucket/",
            "oss://another-bucket/",
        ]

    def test_mb(self, resolver, store):
        run(parse_args(["mb", "oss://made-by-cli/"]), resolver)
        run(parse_args(["mb", "oss://made-by-cli/"]), resolver)
        assert store.list_buckets().count("made-by-cli") == 1

    def test_unsupported_scheme(self, resolver):
        with pytest.raises(ResourceError, match="Unsupported scheme"):
            run(parse_args(["stat", "s3://b/k"]), resolver)


class TestMain:
    """Tests for main()."""

    def test_stat_with_defaults(self, capsys, restore_root_logger):
        main(["stat", "oss://some-bucket/"])
        assert "exists: false" in capsys.readouterr().out

    def test_missing_object_exits_1(self, restore_root_logger):
        with pytest.raises(SystemExit) as exc_info:
            main(["cat", "oss://some-bucket/missing"])
        assert exc_info.value.code == 1

    def test_missing_config_exits_1(self, tmp_path, restore_root_logger):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(tmp_path / "nope.yaml"), "stat", "oss://b/"])
        assert exc_info.value.code == 1

    def test_config_file(self, tmp_path, capsys, restore_root_logger):
        path = tmp_path / "ossresource.yaml"
        path.write_text(yaml.dump({"store": {"backend": "memory"}, "resource": {"scheme": "blob"}}))
        main(["--config", str(path), "--log-format", "json", "stat", "blob://b/k"])
        assert "uri: blob://b/k" in capsys.readouterr().out

    def test_put_too_large_exits_1(self, tmp_path, restore_root_logger):
        path = tmp_path / "ossresource.yaml"
        path.write_text(
            yaml.dump(
                {
                    "store": {"backend": "memory", "memory": {"max_size_bytes": 2000}},
                    "upload": {"buffer_size": 512},
                }
            )
        )
        src = tmp_path / "big.bin"
        src.write_bytes(os.urandom(200_000))
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(path), "put", "oss://b/k", str(src)])
        assert exc_info.value.code == 1

    def test_ls_empty_store(self, capsys, restore_root_logger):
        main(["ls"])
        assert capsys.readouterr().out == ""
