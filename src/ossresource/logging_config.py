"""Logging setup for ossresource.

Library modules only create module-level loggers; applications (and the
``ossresource`` CLI) call ``configure_logging()`` once at startup.

An upload runs on two threads: the caller writing to the stream and a pool
worker running the store's put. Every record handled here carries a
``role`` attribute, ``caller`` or ``worker``, so both sides of one upload
can be read together in either output format.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from ossresource.executor import UPLOAD_THREAD_PREFIX

CALLER = "caller"
WORKER = "worker"

# SDK loggers that are chatty at INFO and below.
_SDK_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")

# Upload context attached by the uploader via ``extra=``.
_UPLOAD_FIELDS = ("bucket", "key", "bytes", "duration_ms")

_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(role)s %(threadName)s] %(name)s: %(message)s"


def record_role(record: logging.LogRecord) -> str:
    """Return ``worker`` for records emitted on upload threads, else ``caller``."""
    if record.threadName and record.threadName.startswith(UPLOAD_THREAD_PREFIX):
        return WORKER
    return CALLER


class RoleFilter(logging.Filter):
    """Stamps each record with its ``role``; never drops a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.role = record_role(record)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Upload records group under an ``upload`` key holding whichever of
    bucket, key, bytes and duration_ms were attached. The worker's
    completion line and the caller's lines for the same object therefore
    share ``upload.bucket`` and ``upload.key``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "role": getattr(record, "role", None) or record_role(record),
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        upload = {
            name: getattr(record, name)
            for name in _UPLOAD_FIELDS
            if getattr(record, name, None) is not None
        }
        if upload:
            entry["upload"] = upload
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Install one stderr handler on the root logger.

    Replaces any handlers already installed, so calling it again switches
    level or format instead of duplicating output. SDK loggers stay at
    WARNING unless ``level`` is DEBUG.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: 'text' for human-readable lines, 'json' for structured output.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.addFilter(RoleFilter())
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(_TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(numeric_level)

    sdk_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in _SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)
