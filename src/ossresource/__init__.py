"""ossresource - file-like resources over a remote object store."""

from ossresource.address import ObjectAddress, filename, parse_address
from ossresource.errors import (
    IllegalOperation,
    MalformedAddress,
    NotFound,
    ResourceError,
    TransportFailure,
    UnsupportedOperation,
    UploadFailure,
)
from ossresource.executor import UploadExecutor
from ossresource.resolver import OssProtocolResolver
from ossresource.resource import BucketRef, OssStorageResource

__version__ = "0.1.0"

__all__ = [
    "BucketRef",
    "filename",
    "IllegalOperation",
    "MalformedAddress",
    "NotFound",
    "ObjectAddress",
    "OssProtocolResolver",
    "OssStorageResource",
    "parse_address",
    "ResourceError",
    "TransportFailure",
    "UnsupportedOperation",
    "UploadExecutor",
    "UploadFailure",
]
