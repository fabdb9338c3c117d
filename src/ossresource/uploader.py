"""Streaming uploads over a blocking whole-stream put.

The store's write primitive takes one complete stream and blocks until it
is uploaded. Callers instead want a file-like object they can write to over
time. ``StreamingUploader.open()`` bridges the two:

1. A bounded ``BytePipe`` is created; its read end is handed to the store's
   ``put_object`` running on an ``UploadExecutor`` worker.
2. The caller writes to the returned ``UploadStream``. Writes block while
   the pipe is full, so memory use stays bounded by the pipe capacity.
3. ``UploadStream.close()`` ends the stream, waits for the worker, and
   raises ``UploadFailure`` if the put failed. A successful ``close()``
   means the object is stored; a write that did not raise means nothing.

A stream that is garbage-collected without ``close()`` aborts its pipe:
the put fails on the worker and the upload is lost (logged, never reported
as success). Always close write streams, ideally with ``with``.
Leaving the block through the caller's own exception aborts the upload
instead of committing a partial object. A write that fails because the
worker stopped leaves the block through ``close()``, which raises
``UploadFailure`` with the store error.

Bytes reach the store in exactly the order they were written. Each session
has its own pipe and worker; nothing is shared between sessions.
"""

import io
import logging
import time
from concurrent.futures import Future

from ossresource import metrics
from ossresource.address import ObjectAddress
from ossresource.errors import UploadFailure
from ossresource.executor import UploadExecutor
from ossresource.pipe import DEFAULT_CAPACITY, BytePipe, PipeReader
from ossresource.storage.backend import ObjectStore

logger = logging.getLogger(__name__)


class UploadSession:
    """State of one open write stream: pipe, worker future and target.

    Attributes:
        address: Destination of the upload.
        pipe: The bounded relay between writer and worker.
        future: The worker's future; set once the task is submitted.
        error: The put's exception, recorded before the pipe's read end
            is closed so a failing writer can always chain it.
        bytes_written: Bytes accepted from the writer so far.
    """

    def __init__(self, address: ObjectAddress, pipe: BytePipe) -> None:
        self.address = address
        self.pipe = pipe
        self.future: Future | None = None
        self.error: BaseException | None = None
        self.bytes_written = 0
        self.started = time.monotonic()

    def wait(self) -> BaseException | None:
        """Block until the worker finishes; return its exception, if any."""
        return self.future.exception()


class UploadStream(io.RawIOBase):
    """Writable front end of an upload session."""

    def __init__(self, session: UploadSession) -> None:
        super().__init__()
        self._session = session
        self._worker_stopped = False

    @property
    def uri(self) -> str:
        return self._session.address.uri

    @property
    def bytes_written(self) -> int:
        return self._session.bytes_written

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        """Relay ``b`` to the uploader, blocking while the pipe is full.

        Raises:
            ValueError: If the stream is closed.
            BrokenPipeError: If the upload worker has already stopped.
        """
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        try:
            n = self._session.pipe.write(b)
        except BrokenPipeError as e:
            self._worker_stopped = True
            raise BrokenPipeError(
                f"Upload to {self.uri} stopped accepting data"
            ) from (self._session.error or e)
        self._session.bytes_written += n
        return n

    def close(self) -> None:
        """Finish the upload and wait for the store to acknowledge it.

        Raises:
            UploadFailure: If the background put failed.
        """
        if self.closed:
            return
        try:
            self._session.pipe.close_writer()
            error = self._session.wait()
        finally:
            super().close()
        if error is not None:
            raise UploadFailure(f"Upload to {self.uri} failed: {error}", uri=self.uri) from error

    def abort(self) -> None:
        """Abandon the upload: nothing is stored and no error is raised.

        Waits for the worker to observe the broken pipe before returning.
        """
        if self.closed:
            return
        try:
            self._session.pipe.abort()
            self._session.wait()
        finally:
            io.RawIOBase.close(self)
        logger.info("Aborted upload to %s after %d bytes", self.uri, self.bytes_written)

    def __exit__(self, exc_type, exc, tb) -> None:
        # Only the caller's own exceptions abort; a broken pipe from write()
        # means the worker stopped, and close() reports why.
        if exc_type is not None and not self._worker_stopped:
            self.abort()
        else:
            self.close()

    def __del__(self) -> None:
        session = getattr(self, "_session", None)
        if session is None or self.closed:
            return
        logger.warning(
            "Write stream for %s was never closed; aborting upload", session.address.uri
        )
        session.pipe.abort()
        # Skip our close(): an abandoned stream must not commit the upload.
        io.RawIOBase.close(self)


class StreamingUploader:
    """Starts upload sessions on a shared executor.

    Attributes:
        store: The object store receiving the uploads.
        executor: Worker pool running the blocking puts.
        buffer_size: Capacity of each session's pipe in bytes.
        submit_timeout: Seconds to wait for a free worker; None waits.
    """

    def __init__(
        self,
        store: ObjectStore,
        executor: UploadExecutor,
        buffer_size: int = DEFAULT_CAPACITY,
        submit_timeout: float | None = None,
    ) -> None:
        self.store = store
        self.executor = executor
        self.buffer_size = buffer_size
        self.submit_timeout = submit_timeout

    def open(self, address: ObjectAddress) -> UploadStream:
        """Start a new upload session for ``address``.

        Blocks while the executor has no free worker.

        Returns:
            The writable stream of the new session.
        """
        session = UploadSession(address, BytePipe(self.buffer_size))
        session.future = self.executor.submit(
            self._upload, session, timeout=self.submit_timeout
        )
        logger.info("Started upload to %s", address.uri)
        return UploadStream(session)

    def _upload(self, session: UploadSession) -> None:
        """Worker body: run the blocking put against the pipe's read end."""
        address = session.address
        if metrics.uploads_in_flight is not None:
            metrics.uploads_in_flight.inc()
        source = PipeReader(session.pipe)
        try:
            self.store.put_object(address.bucket, address.key, source)
        except Exception as e:
            # Record before closing the read end, which wakes a blocked writer.
            session.error = e
            logger.warning("Upload to %s failed", address.uri, exc_info=True)
            metrics.record_upload("error", session.bytes_written)
            raise
        finally:
            source.close()
            if metrics.uploads_in_flight is not None:
                metrics.uploads_in_flight.dec()

        duration_ms = round((time.monotonic() - session.started) * 1000, 1)
        logger.info(
            "Uploaded %s (%d bytes)",
            address.uri,
            session.bytes_written,
            extra={
                "bucket": address.bucket,
                "key": address.key,
                "bytes": session.bytes_written,
                "duration_ms": duration_ms,
            },
        )
        metrics.record_upload("ok", session.bytes_written)
