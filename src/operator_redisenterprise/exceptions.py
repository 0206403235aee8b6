"""
Exception classes for a Redis Enterprise collection cycle.

Every exception here is fatal to the cycle that raised it: nothing is
published, and the CLI exits non-zero so the scheduler sees the failure.

A node that is not the cluster leader is not an error. The collector
returns None for that case instead of raising.

Per project patterns:
- Inherit from a common base so callers can catch one type
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""


class CollectionError(Exception):
    """Base class for all collection cycle failures."""


class TransportError(CollectionError):
    """
    Raised when the management API cannot be reached.

    Covers connection refusals, TLS failures and request timeouts.

    Attributes:
        path: API path that was requested
        reason: Underlying transport error text
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to connect for {path}: {reason}")


class UnexpectedStatusError(CollectionError):
    """
    Raised when the management API answers with an unexpected status code.

    Attributes:
        path: API path that was requested
        status_code: HTTP status code returned
    """

    def __init__(self, path: str, status_code: int) -> None:
        self.path = path
        self.status_code = status_code
        super().__init__(
            f"HTTP status code for {path} is {status_code}, should be 200"
        )


class DecodeError(CollectionError):
    """
    Raised when a response body is not JSON or does not match its model.

    Attributes:
        path: API path that was requested
        reason: Parser or validation error text
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Malformed response from {path}: {reason}")


class PreconditionError(CollectionError):
    """
    Raised when fetched data cannot be turned into metrics.

    Examples: an empty cluster or database name, stats missing for a
    database, a missing tiered-storage gauge, or a zero denominator in a
    percentage derivation.
    """


class CycleTimeoutError(CollectionError):
    """
    Raised when a whole collection cycle exceeds its deadline.

    Attributes:
        timeout: Deadline in seconds that was exceeded
    """

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Collection cycle did not finish within {timeout:.1f}s")
