"""Error taxonomy for ossresource.

Every failure a caller can observe is one of the ``ResourceError``
subclasses below. Store-specific exceptions (botocore ``ClientError`` and
friends) are translated at the oracle, reader and uploader boundaries and
kept as ``__cause__``.
"""


class ResourceError(Exception):
    """A resource error with a machine-readable code and a message.

    Attributes:
        code: Stable error code string (e.g. "NotFound", "UploadFailure").
        message: Human-readable error description.
        uri: The resource address the error relates to, if known.
    """

    code = "ResourceError"

    def __init__(self, message: str, uri: str = "") -> None:
        """Initialize the resource error.

        Args:
            message: Error description.
            uri: Optional resource address for context.
        """
        super().__init__(message)
        self.message = message
        self.uri = uri

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class MalformedAddress(ResourceError):
    """The address string is not of the form ``scheme://bucket[/key]``."""

    code = "MalformedAddress"


class IllegalOperation(ResourceError):
    """The operation is not legal for the resource's target kind."""

    code = "IllegalOperation"


class NotFound(ResourceError):
    """The object (or its metadata) does not exist."""

    code = "NotFound"


class TransportFailure(ResourceError):
    """A remote store call failed for a reason other than not-found."""

    code = "TransportFailure"


class UploadFailure(ResourceError):
    """The background upload failed; raised from the write stream's close()."""

    code = "UploadFailure"


class UnsupportedOperation(ResourceError):
    """The operation can never succeed for a remote resource."""

    code = "UnsupportedOperation"
