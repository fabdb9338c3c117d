"""CLI entry point for ossresource.

Small file-like operations on ``oss://`` addresses, mostly useful for
checking a configuration against a real endpoint::

    ossresource --config ossresource.yaml stat oss://bucket/key
    ossresource --config ossresource.yaml put oss://bucket/key ./file
    ossresource --config ossresource.yaml cat oss://bucket/key > copy
    ossresource --config ossresource.yaml mb oss://new-bucket/
    ossresource --config ossresource.yaml ls
"""

import argparse
import logging
import shutil
import sys
from pathlib import Path
from typing import BinaryIO

from ossresource.config import OssResourceConfig, load_config
from ossresource.errors import ResourceError
from ossresource.logging_config import configure_logging
from ossresource.resolver import OssProtocolResolver

logger = logging.getLogger("ossresource")

# Copy chunk size: 64 KB
_COPY_CHUNK = 64 * 1024


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="ossresource",
        description="ossresource - file-like access to objects in a remote object store",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: built-in defaults)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    stat = sub.add_parser("stat", help="Show existence, size and last-modified time")
    stat.add_argument("uri")

    cat = sub.add_parser("cat", help="Write an object's bytes to stdout")
    cat.add_argument("uri")

    put = sub.add_parser("put", help="Upload a file (or stdin) to an object")
    put.add_argument("uri")
    put.add_argument("file", nargs="?", type=Path, default=None)

    mb = sub.add_parser("mb", help="Create a bucket if it does not exist")
    mb.add_argument("uri")

    sub.add_parser("ls", help="List buckets")

    return parser.parse_args(argv)


def run(
    args: argparse.Namespace,
    resolver: OssProtocolResolver,
    stdin: BinaryIO | None = None,
    stdout=None,
) -> None:
    """Execute one parsed command against a resolver.

    Raises:
        ResourceError: On any resource failure.
    """
    stdout = stdout if stdout is not None else sys.stdout

    if args.command == "ls":
        for bucket in resolver.list_buckets():
            print(bucket.uri, file=stdout)
        return

    resource = resolver.resolve(args.uri)
    if resource is None:
        raise ResourceError(f"Unsupported scheme: '{args.uri}'", uri=args.uri)

    if args.command == "stat":
        exists = resource.exists()
        print(f"uri: {resource.uri}", file=stdout)
        print(f"kind: {'bucket' if resource.is_bucket else 'object'}", file=stdout)
        print(f"exists: {str(exists).lower()}", file=stdout)
        if exists and not resource.is_bucket:
            print(f"content_length: {resource.content_length()}", file=stdout)
            print(f"last_modified: {resource.last_modified().isoformat()}", file=stdout)

    elif args.command == "cat":
        out = getattr(stdout, "buffer", stdout)
        with resource.open_read_stream() as stream:
            shutil.copyfileobj(stream, out, _COPY_CHUNK)
        out.flush()

    elif args.command == "put":
        with resource.open_write_stream() as sink:
            if args.file is not None:
                with open(args.file, "rb") as src:
                    shutil.copyfileobj(src, sink, _COPY_CHUNK)
            else:
                source = stdin if stdin is not None else sys.stdin.buffer
                shutil.copyfileobj(source, sink, _COPY_CHUNK)
        logger.info("Uploaded %s", resource.uri)

    elif args.command == "mb":
        resource.create_bucket()
        logger.info("Bucket %s is ready", resource.get_bucket().name)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the ossresource CLI.

    Loads configuration, applies CLI overrides, runs the command and drains
    the upload executor before exiting.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)

    # Use a basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    if args.config is None:
        config = OssResourceConfig()
    else:
        try:
            config = load_config(args.config)
        except FileNotFoundError:
            logger.error("Config file not found: %s", args.config)
            sys.exit(1)
        except Exception as exc:
            logger.error("Failed to load config: %s", exc)
            sys.exit(1)

    if args.log_level is not None:
        config.logging.level = args.log_level
    if args.log_format is not None:
        config.logging.format = args.log_format

    configure_logging(level=config.logging.level, fmt=config.logging.format)

    with OssProtocolResolver.from_config(config) as resolver:
        try:
            run(args, resolver)
        except ResourceError as exc:
            logger.error("%s: %s", exc.code, exc.message)
            sys.exit(1)


if __name__ == "__main__":
    main()
