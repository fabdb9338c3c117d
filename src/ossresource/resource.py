"""Resource facade over a bucket or object in a remote object store.

``OssStorageResource`` lets application code treat ``oss://bucket/key``
like a local file handle: check existence, read metadata, open read and
write streams. The address is parsed once at construction; existence is
always queried live.

Target kinds:
    - Bucket: ``oss://bucket`` or ``oss://bucket/``. Exists if the bucket
      does; has no content and cannot be streamed.
    - Object: ``oss://bucket/key``. Readable if present, writable through
      a streaming upload.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime

from botocore.exceptions import BotoCoreError, ClientError

from ossresource import metrics
from ossresource.address import ObjectAddress, filename, parse_address
from ossresource.errors import IllegalOperation, NotFound, UnsupportedOperation
from ossresource.executor import UploadExecutor
from ossresource.oracle import ExistenceOracle, error_code, transport_failure
from ossresource.pipe import DEFAULT_CAPACITY
from ossresource.reader import open_object_stream
from ossresource.storage.backend import ObjectStore
from ossresource.uploader import StreamingUploader, UploadStream

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "oss"

# Create-bucket codes meaning the bucket is already there.
_BUCKET_PRESENT_CODES = frozenset({"BucketAlreadyOwnedByYou", "BucketAlreadyExists"})


@dataclass(frozen=True)
class BucketRef:
    """Reference to a resource's bucket; holding one costs no round-trip.

    Attributes:
        name: The bucket name.
    """

    name: str


class OssStorageResource:
    """A bucket or object in the remote store, exposed as a resource.

    Attributes:
        address: The parsed address, fixed at construction.
        auto_create_files: Write intent. Makes a missing object writable
            and creates a missing bucket before a write stream is opened.
    """

    def __init__(
        self,
        store: ObjectStore,
        location: str,
        executor: UploadExecutor | None = None,
        *,
        auto_create_files: bool = False,
        buffer_size: int = DEFAULT_CAPACITY,
        submit_timeout: float | None = None,
        scheme: str = DEFAULT_SCHEME,
    ) -> None:
        """Parse the location and bind the resource to its store.

        Args:
            store: The object store.
            location: Address of the form ``scheme://bucket[/key]``.
            executor: Worker pool for uploads. Required only to open
                write streams.
            auto_create_files: Construct the resource with write intent.
            buffer_size: Capacity of each upload pipe in bytes.
            submit_timeout: Seconds to wait for a free upload worker.
            scheme: Expected address scheme.

        Raises:
            MalformedAddress: If the location cannot be parsed.
        """
        self.address: ObjectAddress = parse_address(location, scheme=scheme)
        self.auto_create_files = auto_create_files
        self._store = store
        self._oracle = ExistenceOracle(store)
        self._executor = executor
        self._buffer_size = buffer_size
        self._submit_timeout = submit_timeout

    # -- Identity -------------------------------------------------------------

    @property
    def uri(self) -> str:
        return self.address.uri

    @property
    def filename(self) -> str:
        """Base name: the bucket for bucket roots, else the key's last segment."""
        return filename(self.address)

    @property
    def is_bucket(self) -> bool:
        return self.address.is_bucket_root

    @property
    def description(self) -> str:
        return f"OSS resource [{self.uri}]"

    def get_bucket(self) -> BucketRef:
        """Return a reference to this resource's bucket without querying it."""
        return BucketRef(name=self.address.bucket)

    def __repr__(self) -> str:
        return f"OssStorageResource({self.uri!r})"

    # -- Existence and metadata -----------------------------------------------

    def bucket_exists(self) -> bool:
        return self._oracle.bucket_exists(self.address.bucket)

    def exists(self) -> bool:
        """Return True if the bucket (for bucket roots) or object exists."""
        if self.is_bucket:
            return self.bucket_exists()
        return self._oracle.object_exists(self.address.bucket, self.address.key)

    def content_length(self) -> int:
        """Return the object's size in bytes.

        Raises:
            NotFound: For a bucket, or if the object does not exist.
            TransportFailure: On any other remote error.
        """
        self._require_object_metadata("content length")
        return self._oracle.metadata(self.address.bucket, self.address.key).content_length

    def last_modified(self) -> datetime:
        """Return the object's last-modified timestamp.

        Raises:
            NotFound: For a bucket, or if the object does not exist.
            TransportFailure: On any other remote error.
        """
        self._require_object_metadata("last-modified time")
        return self._oracle.metadata(self.address.bucket, self.address.key).last_modified

    def _require_object_metadata(self, what: str) -> None:
        if self.is_bucket:
            raise NotFound(f"A bucket has no {what}: '{self.uri}'", uri=self.uri)

    def get_file_path(self):
        """Always fails: a remote resource has no local filesystem path.

        Raises:
            UnsupportedOperation: Always.
        """
        raise UnsupportedOperation(
            f"{self.uri} cannot be resolved to absolute file path", uri=self.uri
        )

    # -- State ----------------------------------------------------------------

    def is_open(self) -> bool:
        """Always False: streams are opened on demand, nothing is held."""
        return False

    def is_writable(self) -> bool:
        """True for objects that exist or were constructed with write intent."""
        if self.is_bucket:
            return False
        return self.auto_create_files or self.exists()

    # -- Streams --------------------------------------------------------------

    def open_read_stream(self) -> io.BufferedReader:
        """Open a fresh read stream on the object.

        Raises:
            IllegalOperation: If this resource is a bucket.
            NotFound: If the object does not exist.
            TransportFailure: On any other remote error.
        """
        if self.is_bucket:
            raise IllegalOperation(
                f"Cannot open an input stream to a bucket: '{self.uri}'", uri=self.uri
            )
        if not self.exists():
            raise NotFound(f"Object not found: {self.uri}", uri=self.uri)
        return open_object_stream(self._store, self.address)

    def open_write_stream(self) -> UploadStream:
        """Start a streaming upload to the object.

        The upload is only complete once the returned stream's ``close()``
        returns without raising.

        Raises:
            IllegalOperation: If this resource is a bucket, or no upload
                executor is available.
            TransportFailure: If creating a missing bucket fails.
        """
        if self.is_bucket:
            raise IllegalOperation(
                f"Cannot open an output stream to a bucket: '{self.uri}'", uri=self.uri
            )
        if self._executor is None:
            raise IllegalOperation(
                f"No upload executor configured for '{self.uri}'", uri=self.uri
            )
        if self.auto_create_files:
            self.create_bucket()
        uploader = StreamingUploader(
            self._store,
            self._executor,
            buffer_size=self._buffer_size,
            submit_timeout=self._submit_timeout,
        )
        return uploader.open(self.address)

    # -- Bucket management ----------------------------------------------------

    def create_bucket(self) -> None:
        """Create this resource's bucket if it does not exist yet.

        Idempotent: a bucket that already exists, including one created
        concurrently by someone else, counts as success.

        Raises:
            TransportFailure: On any other remote error.
        """
        bucket = self.address.bucket
        if self.bucket_exists():
            return
        try:
            self._store.create_bucket(bucket)
        except ClientError as e:
            if error_code(e) in _BUCKET_PRESENT_CODES:
                metrics.record_store_request("create_bucket", "exists")
                logger.debug("Bucket %s already exists", bucket)
                return
            metrics.record_store_request("create_bucket", "error")
            raise transport_failure("create_bucket", bucket, e) from e
        except BotoCoreError as e:
            metrics.record_store_request("create_bucket", "error")
            raise transport_failure("create_bucket", bucket, e) from e
        metrics.record_store_request("create_bucket", "ok")
        logger.info("Created bucket %s", bucket)
