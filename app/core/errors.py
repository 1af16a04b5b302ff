"""Error types raised by the assistant connector and mapped to HTTP by the API."""

from __future__ import annotations


class ConnectorError(Exception):
    """Base class for failures talking to the remote assistant service."""

    def __init__(self, message: str, response_body: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.response_body = response_body


class ConfigurationError(ConnectorError):
    """A required setting is missing or empty."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "OpenAI connector not configured on server.",
            "Missing settings: " + ", ".join(self.missing),
        )


class ParseFailure(ConnectorError):
    """A response was successful but did not contain the expected data."""

    def __init__(self, target: str, reason: str, response_body: str | None = None) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"Could not parse {target}: {reason}.", response_body)


class RemoteRequestFailure(ConnectorError):
    """The remote service answered with a non-2xx status code."""

    def __init__(self, action: str, status_code: int, response_body: str | None = None) -> None:
        self.action = action
        self.status_code = status_code
        super().__init__(f"Failed to {action} (status {status_code}).", response_body)


class PollTimeout(ConnectorError):
    """A run did not reach ``completed`` before the polling deadline."""

    def __init__(self, max_duration: float, interval: float, elapsed: float | None = None) -> None:
        self.max_duration = max_duration
        self.interval = interval
        self.elapsed = elapsed
        super().__init__(
            "Assistant run timed out.",
            f"Time: {max_duration:g}, Interval: {interval:g}",
        )


class TransportFailure(ConnectorError):
    """The HTTP request itself failed (connection error, timeout, ...)."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Could not reach OpenAI: {detail}")


class InvalidDataError(Exception):
    """Client supplied an unusable request body."""
