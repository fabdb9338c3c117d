"""Object address parsing for ossresource.

An address has the form ``scheme://bucket[/key]``. The first path segment
is the bucket; whatever follows the first ``/`` is the object key. An
empty key (``oss://bucket`` or ``oss://bucket/``) addresses the bucket
itself.
"""

from __future__ import annotations

from dataclasses import dataclass

from ossresource.errors import MalformedAddress

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SCHEME_SEPARATOR = "://"
PATH_SEPARATOR = "/"

# Same key limit as S3 and OSS.
_MAX_KEY_BYTES = 1024


@dataclass(frozen=True)
class ObjectAddress:
    """Decomposed, immutable address of a bucket or object.

    Attributes:
        scheme: The address scheme (e.g. "oss").
        bucket: The bucket name, never empty.
        key: The object key; empty for a bucket-root address.
    """

    scheme: str
    bucket: str
    key: str = ""

    @property
    def is_bucket_root(self) -> bool:
        """True when the address denotes the bucket itself."""
        return self.key == ""

    @property
    def uri(self) -> str:
        """The canonical address string; bucket roots keep a trailing slash."""
        return f"{self.scheme}{SCHEME_SEPARATOR}{self.bucket}{PATH_SEPARATOR}{self.key}"

    def __str__(self) -> str:
        return self.uri


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_address(uri: str, scheme: str | None = None) -> ObjectAddress:
    """Parse ``scheme://bucket[/key]`` into an ObjectAddress.

    Args:
        uri: The address string.
        scheme: Expected scheme. When given, any other scheme is rejected.

    Returns:
        The parsed address.

    Raises:
        MalformedAddress: If the scheme separator or the bucket segment is
            missing, the scheme does not match, or the key is too long.
    """
    found_scheme, sep, remainder = uri.partition(SCHEME_SEPARATOR)
    if not sep or not found_scheme:
        raise MalformedAddress(f"Address has no scheme: '{uri}'", uri=uri)
    if scheme is not None and found_scheme != scheme:
        raise MalformedAddress(
            f"Address scheme '{found_scheme}' is not '{scheme}': '{uri}'", uri=uri
        )

    bucket, _, key = remainder.partition(PATH_SEPARATOR)
    if not bucket:
        raise MalformedAddress(f"Address has no bucket: '{uri}'", uri=uri)
    if len(key.encode("utf-8")) > _MAX_KEY_BYTES:
        raise MalformedAddress(f"Object key is too long: '{uri}'", uri=uri)

    return ObjectAddress(scheme=found_scheme, bucket=bucket, key=key)


def filename(address: ObjectAddress) -> str:
    """Return the base name of an address.

    The bucket name for bucket roots, otherwise the last ``/``-separated
    segment of the key (empty when the key ends with ``/``).
    """
    if address.is_bucket_root:
        return address.bucket
    return address.key.rsplit(PATH_SEPARATOR, 1)[-1]
