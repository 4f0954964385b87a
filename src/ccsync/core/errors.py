"""Exceptions raised by the sync engine."""


class SyncError(Exception):
    """Base class for sync engine errors."""


class TransientNetworkFailure(SyncError):
    """A push or pull I/O call against the cloud store failed.

    Push failures of this kind are retried with backoff.
    """

    def __init__(self, operation: str, cause: BaseException):
        """Initialize failure.

        Args:
            operation: Short description of the failed call
            cause: Underlying exception
        """
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class SerializationFailure(SyncError):
    """A stored payload could not be decoded.

    Never propagated to callers of the read path; readers treat the value as
    absent.
    """

    def __init__(self, key: str, reason: str):
        """Initialize failure.

        Args:
            key: Cloud store key holding the payload
            reason: Decoder error message
        """
        self.key = key
        self.reason = reason
        super().__init__(f"Malformed payload under '{key}': {reason}")
