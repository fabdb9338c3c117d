"""Object store protocol consumed by ossresource."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Protocol


@dataclass
class ObjectMetadata:
    """Metadata reported by the store for a single object.

    Attributes:
        content_length: Size in bytes.
        last_modified: Timezone-aware last-modified timestamp.
        etag: Entity tag, quotes stripped.
    """

    content_length: int
    last_modified: datetime
    etag: str = ""


class ObjectStore(Protocol):
    """Protocol defining the remote object store interface.

    All calls are synchronous and block the calling thread. Remote errors
    are raised as botocore ``ClientError`` carrying an S3 error code
    ("404", "NoSuchKey", "NoSuchBucket", "BucketAlreadyOwnedByYou", ...);
    transport-level problems may surface as ``BotoCoreError``.
    """

    def bucket_exists(self, bucket: str) -> bool:
        """Return True if the bucket exists.

        Args:
            bucket: The bucket name.
        """
        ...

    def create_bucket(self, bucket: str) -> None:
        """Create a bucket.

        Args:
            bucket: The bucket name.
        """
        ...

    def list_buckets(self) -> list[str]:
        """Return the names of all buckets visible to the caller."""
        ...

    def put_object(self, bucket: str, key: str, stream: BinaryIO) -> None:
        """Upload a complete object from a stream.

        Blocks until the stream is exhausted and the object is stored, or
        until a read or transport error occurs.

        Args:
            bucket: The bucket name.
            key: The object key.
            stream: Readable binary stream; consumed to end-of-stream.
        """
        ...

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        """Open an object for reading.

        Args:
            bucket: The bucket name.
            key: The object key.

        Returns:
            A readable binary stream. The caller must close it.
        """
        ...

    def head_object(self, bucket: str, key: str) -> ObjectMetadata:
        """Fetch an object's metadata.

        Args:
            bucket: The bucket name.
            key: The object key.

        Returns:
            The object's metadata.
        """
        ...
