"""Object store backends for ossresource."""

from typing import TYPE_CHECKING

from ossresource.storage.backend import ObjectMetadata, ObjectStore

if TYPE_CHECKING:
    from ossresource.config import StoreConfig

__all__ = [
    "create_object_store",
    "ObjectMetadata",
    "ObjectStore",
]


def create_object_store(config: "StoreConfig") -> ObjectStore:
    """Create an object store instance based on configuration.

    Args:
        config: The store configuration.

    Returns:
        An ObjectStore implementation.

    Raises:
        ValueError: If the configured backend is unknown.
    """
    if config.backend == "memory":
        from ossresource.storage.memory import MemoryObjectStore

        return MemoryObjectStore(max_size_bytes=config.memory_max_size_bytes)

    if config.backend == "s3":
        from ossresource.storage.s3 import S3ObjectStore

        return S3ObjectStore(
            region=config.region,
            endpoint_url=config.endpoint_url,
            use_path_style=config.use_path_style,
            access_key_id=config.access_key_id,
            secret_access_key=config.secret_access_key,
        )

    raise ValueError(f"Unknown object store backend: {config.backend}")
