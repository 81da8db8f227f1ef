"""Error hierarchy for backend fallback and retry classification.

This hierarchy lets the fallback coordinator and tenacity retry policies
classify transient failures (try again, or move to the next strategy) vs
permanent failures (the same call will not succeed on retry).

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    async def fetch_reservations(transport: ApiTransport):
        ...
"""


class CampusClientError(Exception):
    """Base exception for all client errors."""

    pass


class TransientError(CampusClientError):
    """Temporary failure that may succeed on retry.

    Examples: network timeouts, connection refused, 503 Service Unavailable.
    """

    pass


class TransportError(TransientError):
    """No response received - network unreachable or request timed out."""

    pass


class ServerError(TransientError):
    """Response received with a 5xx or 429 status."""

    def __init__(self, status: int, message: str = "") -> None:
        self.status = status
        super().__init__(message or f"Server responded with status {status}")


class PermanentError(CampusClientError):
    """Failure that won't succeed on retry.

    Examples: 404 on a path the backend doesn't serve, malformed payloads,
    a mutation the record's current status doesn't allow.
    """

    pass


class ClientStatusError(PermanentError):
    """Response received with a non-success, non-retryable status (4xx)."""

    def __init__(self, status: int, message: str = "") -> None:
        self.status = status
        super().__init__(message or f"Server rejected request with status {status}")


class ParseError(PermanentError):
    """Response received but not in an expected shape."""

    pass


class InvalidMutationError(PermanentError):
    """Caller-provided input violates a precondition, e.g. editing a non-pending record.

    The reason is user-facing and is surfaced before any network attempt.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class CacheError(PermanentError):
    """Serialization or deserialization of a local snapshot failed."""

    pass


class FallbackExhaustedError(CampusClientError):
    """Every strategy in a fallback chain failed.

    Carries the (strategy name, exception) pairs in the order they were tried.
    """

    def __init__(self, operation: str, failures: list[tuple[str, Exception]]) -> None:
        self.operation = operation
        self.failures = failures
        tried = ", ".join(name for name, _ in failures) or "none"
        super().__init__(f"All strategies failed for {operation} (tried: {tried})")
