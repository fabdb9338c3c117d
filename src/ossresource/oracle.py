"""Existence and metadata queries against the object store.

Every query is a fresh round-trip: the store is the only source of truth,
so nothing is cached here. Store errors are translated into the
ossresource taxonomy: not-found becomes ``False`` or ``NotFound``,
anything else becomes ``TransportFailure``.
"""

import logging

from botocore.exceptions import BotoCoreError, ClientError

from ossresource import metrics
from ossresource.errors import NotFound, TransportFailure
from ossresource.storage.backend import ObjectMetadata, ObjectStore

logger = logging.getLogger(__name__)

# S3 error codes that mean "the bucket or object is not there".
NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NoSuchBucket", "NotFound"})


def error_code(exc: ClientError) -> str:
    """Return the S3 error code carried by a ClientError."""
    return exc.response.get("Error", {}).get("Code", "")


def is_not_found(exc: BaseException) -> bool:
    """True if a store exception signals a missing bucket or object."""
    return isinstance(exc, ClientError) and error_code(exc) in NOT_FOUND_CODES


def transport_failure(operation: str, target: str, exc: Exception) -> TransportFailure:
    """Wrap a store exception as a TransportFailure with a readable message."""
    if isinstance(exc, ClientError):
        detail = f"{error_code(exc)}: {exc}"
    else:
        detail = str(exc)
    return TransportFailure(f"{operation} failed for {target}: {detail}", uri=target)


class ExistenceOracle:
    """Answers presence and metadata questions about buckets and objects.

    Attributes:
        store: The object store queried on every call.
    """

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def bucket_exists(self, bucket: str) -> bool:
        """Return True if the bucket exists.

        Raises:
            TransportFailure: On any remote error other than not-found.
        """
        try:
            found = self.store.bucket_exists(bucket)
        except (ClientError, BotoCoreError) as e:
            if is_not_found(e):
                found = False
            else:
                metrics.record_store_request("bucket_exists", "error")
                raise transport_failure("bucket_exists", bucket, e) from e
        metrics.record_store_request("bucket_exists", "ok")
        logger.debug("bucket_exists(%s) -> %s", bucket, found)
        return found

    def object_exists(self, bucket: str, key: str) -> bool:
        """Return True if the object exists.

        Raises:
            TransportFailure: On any remote error other than not-found.
        """
        try:
            self._head(bucket, key)
        except NotFound:
            logger.debug("object_exists(%s/%s) -> False", bucket, key)
            return False
        logger.debug("object_exists(%s/%s) -> True", bucket, key)
        return True

    def metadata(self, bucket: str, key: str) -> ObjectMetadata:
        """Fetch an object's content length and last-modified time.

        Raises:
            NotFound: If the object does not exist.
            TransportFailure: On any other remote error.
        """
        return self._head(bucket, key)

    def list_buckets(self) -> list[str]:
        """Return the names of all buckets.

        Raises:
            TransportFailure: On any remote error.
        """
        try:
            names = self.store.list_buckets()
        except (ClientError, BotoCoreError) as e:
            metrics.record_store_request("list_buckets", "error")
            raise transport_failure("list_buckets", "*", e) from e
        metrics.record_store_request("list_buckets", "ok")
        return names

    def _head(self, bucket: str, key: str) -> ObjectMetadata:
        target = f"{bucket}/{key}"
        try:
            meta = self.store.head_object(bucket, key)
        except (ClientError, BotoCoreError) as e:
            if is_not_found(e):
                metrics.record_store_request("head_object", "not_found")
                raise NotFound(f"Object not found: {target}", uri=target) from e
            metrics.record_store_request("head_object", "error")
            raise transport_failure("head_object", target, e) from e
        metrics.record_store_request("head_object", "ok")
        return meta
