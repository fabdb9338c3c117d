"""Turns address strings into resources.

``OssProtocolResolver`` owns the wiring a process needs: one object store
client and one bounded upload executor shared by every resource it
resolves. Close it at shutdown to drain in-flight uploads.
"""

from __future__ import annotations

import logging

from ossresource import metrics
from ossresource.address import SCHEME_SEPARATOR
from ossresource.config import OssResourceConfig
from ossresource.executor import UploadExecutor
from ossresource.oracle import ExistenceOracle
from ossresource.pipe import DEFAULT_CAPACITY
from ossresource.resource import DEFAULT_SCHEME, OssStorageResource
from ossresource.storage import create_object_store
from ossresource.storage.backend import ObjectStore

logger = logging.getLogger(__name__)


class OssProtocolResolver:
    """Resolves ``scheme://bucket[/key]`` locations to OssStorageResource.

    Attributes:
        store: Object store shared by all resolved resources.
        executor: Upload worker pool shared by all resolved resources.
        scheme: The scheme this resolver handles.
        auto_create_files: Write intent given to resolved resources.
    """

    def __init__(
        self,
        store: ObjectStore,
        executor: UploadExecutor,
        *,
        scheme: str = DEFAULT_SCHEME,
        auto_create_files: bool = True,
        buffer_size: int = DEFAULT_CAPACITY,
        submit_timeout: float | None = None,
    ) -> None:
        self.store = store
        self.executor = executor
        self.scheme = scheme
        self.auto_create_files = auto_create_files
        self.buffer_size = buffer_size
        self.submit_timeout = submit_timeout

    @classmethod
    def from_config(cls, config: OssResourceConfig) -> "OssProtocolResolver":
        """Build the store, executor and resolver described by ``config``."""
        if config.metrics.enabled:
            metrics.init_metrics()
        store = create_object_store(config.store)
        executor = UploadExecutor(max_workers=config.upload.max_workers)
        logger.info(
            "Resolver ready: scheme=%s backend=%s max_workers=%d",
            config.resource.scheme,
            config.store.backend,
            config.upload.max_workers,
        )
        return cls(
            store,
            executor,
            scheme=config.resource.scheme,
            auto_create_files=config.resource.auto_create_files,
            buffer_size=config.upload.buffer_size,
            submit_timeout=config.upload.submit_timeout,
        )

    def handles(self, location: str) -> bool:
        """True if ``location`` uses this resolver's scheme."""
        return location.startswith(f"{self.scheme}{SCHEME_SEPARATOR}")

    def resolve(self, location: str) -> OssStorageResource | None:
        """Return a resource for ``location``, or None for other schemes.

        Raises:
            MalformedAddress: If the scheme matches but the address is bad.
        """
        if not self.handles(location):
            return None
        return OssStorageResource(
            self.store,
            location,
            self.executor,
            auto_create_files=self.auto_create_files,
            buffer_size=self.buffer_size,
            submit_timeout=self.submit_timeout,
            scheme=self.scheme,
        )

    def list_buckets(self) -> list[OssStorageResource]:
        """Return a bucket-root resource for every bucket the store lists.

        Raises:
            TransportFailure: If the store cannot list its buckets.
        """
        names = ExistenceOracle(self.store).list_buckets()
        return [self.resolve(f"{self.scheme}{SCHEME_SEPARATOR}{name}/") for name in names]

    def close(self) -> None:
        """Wait for in-flight uploads, then reject new ones."""
        self.executor.shutdown(wait=True)

    def __enter__(self) -> "OssProtocolResolver":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
