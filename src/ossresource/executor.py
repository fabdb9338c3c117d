"""Bounded worker pool for background uploads.

One ``UploadExecutor`` is meant to be created per process (or per
resolver) and injected into every resource that opens write streams.

Lifecycle:
    - Construction starts the pool with ``max_workers`` threads.
    - ``submit()`` blocks while every worker is busy, since each upload
      holds a store connection for its whole duration.
    - ``shutdown()`` waits for in-flight uploads to finish, then rejects
      new submissions with ``IllegalOperation``.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from ossresource.errors import IllegalOperation

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8

# Upload worker threads are named "<prefix>_<n>"; log records use it to tell
# worker lines from caller lines.
UPLOAD_THREAD_PREFIX = "ossresource-upload"


class UploadExecutor:
    """Thread pool that blocks submitters instead of queueing without bound.

    Attributes:
        max_workers: Maximum number of concurrent uploads.
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        thread_name_prefix: str = UPLOAD_THREAD_PREFIX,
    ) -> None:
        if max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self.max_workers = max_workers
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self._slots = threading.BoundedSemaphore(max_workers)
        self._lock = threading.Lock()
        self._in_flight = 0
        self._shutdown = False

    @property
    def in_flight(self) -> int:
        """Number of submitted tasks that have not finished yet."""
        with self._lock:
            return self._in_flight

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def submit(
        self, fn: Callable[..., Any], *args: Any, timeout: float | None = None
    ) -> Future:
        """Run ``fn(*args)`` on a worker, waiting for a free slot.

        Args:
            fn: The callable to run.
            *args: Positional arguments for ``fn``.
            timeout: Seconds to wait for a free worker; None waits forever.

        Returns:
            A Future for the task's result.

        Raises:
            IllegalOperation: If the executor is shut down.
            TimeoutError: If no worker became free within ``timeout``.
        """
        if self._shutdown:
            raise IllegalOperation("Upload executor is shut down")
        if not self._slots.acquire(timeout=timeout):
            raise TimeoutError(f"No upload worker became free within {timeout}s")

        with self._lock:
            if self._shutdown:
                self._slots.release()
                raise IllegalOperation("Upload executor is shut down")
            self._in_flight += 1

        try:
            future = self._pool.submit(fn, *args)
        except RuntimeError as e:
            self._release()
            raise IllegalOperation("Upload executor is shut down") from e
        future.add_done_callback(lambda _f: self._release())
        return future

    def _release(self) -> None:
        with self._lock:
            self._in_flight -= 1
        self._slots.release()

    def shutdown(self, wait: bool = True) -> None:
        """Reject new uploads and, by default, wait for in-flight ones.

        Args:
            wait: Block until every running upload has finished.
        """
        with self._lock:
            self._shutdown = True
            pending = self._in_flight
        logger.info("Shutting down upload executor (%d uploads in flight)", pending)
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> "UploadExecutor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=True)
