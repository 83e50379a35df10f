"""Async client for the PagerDuty REST API v2.

- PagerDutyApi: stateless client with GET (auto pagination), POST, PUT, DELETE
- PagerDutyApiError: unified error type, see ``err.kind``
- update_url: adds offset, total and limit to a GET url

Example:
    >>> from pagerduty_rest import PagerDutyApi
    >>> async with PagerDutyApi(token="...") as api:
    ...     incidents = await api.get("incidents?time_zone=UTC", key="incidents")
"""

from pagerduty_rest.client import (
    ACCEPT,
    EXPECTED_STATUS,
    PagerDutyApi,
    PagerDutyApiCallContext,
    build_headers,
)
from pagerduty_rest.config import Settings
from pagerduty_rest.exceptions import (
    ConfigurationError,
    ErrorKind,
    HttpStatusError,
    PagerDutyApiError,
    PaginationError,
    PaginationLimitError,
    TransportError,
)
from pagerduty_rest.hooks import NO_RETRY_CONFIG, Hooks, RetryConfig
from pagerduty_rest.models import ApiResponse, ClientConfig, Page, RequestOptions
from pagerduty_rest.url import update_url

__all__ = [
    "ACCEPT",
    "EXPECTED_STATUS",
    "NO_RETRY_CONFIG",
    "ApiResponse",
    "ClientConfig",
    "ConfigurationError",
    "ErrorKind",
    "Hooks",
    "HttpStatusError",
    "Page",
    "PagerDutyApi",
    "PagerDutyApiCallContext",
    "PagerDutyApiError",
    "PaginationError",
    "PaginationLimitError",
    "RequestOptions",
    "RetryConfig",
    "Settings",
    "TransportError",
    "build_headers",
    "update_url",
]
