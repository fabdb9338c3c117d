"""In-memory object store for ossresource.

Implements the ObjectStore protocol using Python dictionaries guarded by a
lock, and signals errors the way S3 does (botocore ``ClientError`` with an
S3 error code), so code written against the real store behaves the same
against this one.
"""

import hashlib
import io
import logging
import threading
from datetime import datetime, timezone
from typing import BinaryIO

from botocore.exceptions import ClientError

from ossresource.storage.backend import ObjectMetadata

logger = logging.getLogger(__name__)

# Streaming chunk size: 64 KB
_CHUNK_SIZE = 64 * 1024


def client_error(code: str, message: str, operation: str) -> ClientError:
    """Build a botocore ClientError with the given S3 error code."""
    status = 404 if code in ("404", "NoSuchKey", "NoSuchBucket") else 400
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class MemoryObjectStore:
    """Object store that holds all buckets and objects in memory.

    Objects are stored in a dictionary keyed by (bucket, key) with values of
    (data_bytes, etag_hex, last_modified).

    Attributes:
        max_size_bytes: Maximum total bytes allowed (0 = unlimited).
    """

    def __init__(self, max_size_bytes: int = 0) -> None:
        """Initialize the memory object store.

        Args:
            max_size_bytes: Maximum total bytes of object data to hold in
                memory. 0 means unlimited. The limit is enforced while a put
                is consuming its stream, so an oversized upload fails part
                way through.
        """
        self.max_size_bytes = max_size_bytes
        self._buckets: dict[str, datetime] = {}
        self._objects: dict[tuple[str, str], tuple[bytes, str, datetime]] = {}
        self._current_size: int = 0
        self._lock = threading.Lock()

    @property
    def current_size(self) -> int:
        """Total bytes of object data currently stored."""
        return self._current_size

    def bucket_exists(self, bucket: str) -> bool:
        with self._lock:
            return bucket in self._buckets

    def create_bucket(self, bucket: str) -> None:
        """Create a bucket.

        Raises:
            ClientError: ``BucketAlreadyOwnedByYou`` if it already exists.
        """
        with self._lock:
            if bucket in self._buckets:
                raise client_error(
                    "BucketAlreadyOwnedByYou",
                    f"Bucket already exists: {bucket}",
                    "CreateBucket",
                )
            self._buckets[bucket] = datetime.now(timezone.utc)
        logger.debug("Created bucket %s", bucket)

    def list_buckets(self) -> list[str]:
        with self._lock:
            return sorted(self._buckets)

    def put_object(self, bucket: str, key: str, stream: BinaryIO) -> None:
        """Consume the stream in 64 KB chunks and store the object.

        Raises:
            ClientError: ``NoSuchBucket`` if the bucket does not exist, or
                ``EntityTooLarge`` once the data read so far would exceed
                ``max_size_bytes``.
        """
        if not self.bucket_exists(bucket):
            raise client_error("NoSuchBucket", f"Bucket not found: {bucket}", "PutObject")

        buf = bytearray()
        while True:
            chunk = stream.read(_CHUNK_SIZE)
            if not chunk:
                break
            buf.extend(chunk)
            self._check_capacity(bucket, key, len(buf))

        data = bytes(buf)
        etag = hashlib.md5(data).hexdigest()
        with self._lock:
            old = self._objects.get((bucket, key))
            if old is not None:
                self._current_size -= len(old[0])
            self._objects[(bucket, key)] = (data, etag, datetime.now(timezone.utc))
            self._current_size += len(data)

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        data, _, _ = self._lookup(bucket, key, "GetObject")
        return io.BytesIO(data)

    def head_object(self, bucket: str, key: str) -> ObjectMetadata:
        data, etag, last_modified = self._lookup(bucket, key, "HeadObject")
        return ObjectMetadata(
            content_length=len(data), last_modified=last_modified, etag=etag
        )

    def _lookup(self, bucket: str, key: str, operation: str) -> tuple[bytes, str, datetime]:
        """Return the stored tuple for (bucket, key) or raise NoSuchKey."""
        with self._lock:
            entry = self._objects.get((bucket, key))
        if entry is None:
            raise client_error("NoSuchKey", f"Object not found: {bucket}/{key}", operation)
        return entry

    def _check_capacity(self, bucket: str, key: str, pending_bytes: int) -> None:
        """Check whether storing pending_bytes would exceed max_size_bytes.

        Bytes already held for the same key are not counted, since the put
        replaces them.

        Raises:
            ClientError: ``EntityTooLarge`` if the store would exceed capacity.
        """
        if self.max_size_bytes <= 0:
            return
        with self._lock:
            old = self._objects.get((bucket, key))
            replaced = len(old[0]) if old is not None else 0
            total = self._current_size - replaced + pending_bytes
        if total > self.max_size_bytes:
            raise client_error(
                "EntityTooLarge",
                f"Cannot store {bucket}/{key}: would exceed max_size_bytes "
                f"({total} > {self.max_size_bytes})",
                "PutObject",
            )
