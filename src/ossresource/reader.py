"""Readable stream adapter over a remote object.

Each call to ``open_object_stream`` issues a fresh get-object request and
returns a sequential, non-restartable stream. Closing the stream releases
the underlying connection; use it in a ``with`` block so the release also
happens when reading raises.
"""

import io
import logging
from typing import BinaryIO

from botocore.exceptions import BotoCoreError, ClientError

from ossresource import metrics
from ossresource.address import ObjectAddress
from ossresource.errors import NotFound
from ossresource.oracle import is_not_found, transport_failure
from ossresource.storage.backend import ObjectStore

logger = logging.getLogger(__name__)


class ObjectReadStream(io.RawIOBase):
    """Raw readable stream over a store response body.

    Attributes:
        uri: Address of the object being read.
        bytes_read: Number of bytes delivered so far.
    """

    def __init__(self, body: BinaryIO, uri: str) -> None:
        super().__init__()
        self._body = body
        self.uri = uri
        self.bytes_read = 0

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        try:
            data = self._body.read(len(b))
        except (ClientError, BotoCoreError) as e:
            raise transport_failure("read", self.uri, e) from e
        n = len(data)
        b[:n] = data
        self.bytes_read += n
        return n

    def close(self) -> None:
        """Release the remote connection. Safe to call more than once."""
        if self.closed:
            return
        try:
            self._body.close()
        finally:
            super().close()
            metrics.record_download(self.bytes_read)
            logger.debug("Closed read stream %s after %d bytes", self.uri, self.bytes_read)


def open_object_stream(
    store: ObjectStore,
    address: ObjectAddress,
    buffer_size: int = io.DEFAULT_BUFFER_SIZE,
) -> io.BufferedReader:
    """Open a buffered read stream on an existing object.

    Args:
        store: The object store.
        address: Address of the object (not a bucket root).
        buffer_size: Read-ahead buffer size.

    Returns:
        A buffered binary reader; closing it closes the remote body.

    Raises:
        NotFound: If the object does not exist.
        TransportFailure: On any other remote error.
    """
    try:
        body = store.get_object(address.bucket, address.key)
    except (ClientError, BotoCoreError) as e:
        if is_not_found(e):
            metrics.record_store_request("get_object", "not_found")
            raise NotFound(f"Object not found: {address.uri}", uri=address.uri) from e
        metrics.record_store_request("get_object", "error")
        raise transport_failure("get_object", address.uri, e) from e
    metrics.record_store_request("get_object", "ok")
    return io.BufferedReader(ObjectReadStream(body, address.uri), buffer_size=buffer_size)
