"""Errors raised by the PagerDuty REST client.

All failures share one base class, PagerDutyApiError, tagged with an
ErrorKind so callers can branch on ``err.kind`` or on the subclass.
"""

import json
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    HTTP = "http"
    PAGINATION = "pagination"


class PagerDutyApiError(Exception):
    """Base exception for PagerDuty API errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class ConfigurationError(PagerDutyApiError):
    """Raised before any network call when a request cannot be built."""

    kind = ErrorKind.CONFIGURATION


class TransportError(PagerDutyApiError):
    """Network level failure: DNS, connection or timeout.

    Attributes:
        code: Machine readable failure class (timeout, connect, network,
            protocol, transport)
    """

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code

    @property
    def timed_out(self) -> bool:
        return self.code == "timeout"


class HttpStatusError(PagerDutyApiError):
    """Response received, but with a status other than the expected one.

    Attributes:
        status_code: HTTP status code returned by the server
        expected_status: The single status code considered success
        body: Raw response body text
    """

    kind = ErrorKind.HTTP

    def __init__(self, status_code: int, expected_status: int, body: str) -> None:
        super().__init__(f"HTTP status code {status_code}: {body}")
        self.status_code = status_code
        self.expected_status = expected_status
        self.body = body

    def json(self) -> Any:
        """Decode the response body, None if it is not JSON."""
        try:
            return json.loads(self.body)
        except ValueError:
            return None


class PaginationError(PagerDutyApiError):
    """The server's pagination hints cannot be followed."""

    kind = ErrorKind.PAGINATION


class PaginationLimitError(PaginationError):
    """A configured page or item budget was exceeded."""

    def __init__(self, message: str, pages: int, items: int | None = None) -> None:
        super().__init__(message)
        self.pages = pages
        self.items = items
