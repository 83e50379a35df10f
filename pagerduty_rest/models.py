"""Pydantic models for the PagerDuty REST client.

All models are immutable (frozen=True) so a client and its config can be
shared between concurrent calls without locking.
"""

from typing import Any, Self

from pydantic import BaseModel, Field

from pagerduty_rest.config import Settings

DEFAULT_BASE_URL = "https://api.pagerduty.com/"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 3


class ClientConfig(BaseModel, frozen=True):
    """Client wide defaults, resolved once when the client is built.

    Attributes:
        token: Default PagerDuty access token
        timeout: Default timeout in seconds for a single round trip
        base_url: API base url, request paths are appended to it
        max_retries: Retries for transient transport failures
        max_pages: Maximum pages fetched by one GET, None for unbounded
        max_items: Maximum aggregated items of one GET, None for unbounded
    """

    token: str | None = Field(default=None, repr=False)
    timeout: float | None = None
    base_url: str = DEFAULT_BASE_URL
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    max_pages: int | None = Field(default=None, ge=1)
    max_items: int | None = Field(default=None, ge=1)

    @classmethod
    def resolve(
        cls,
        token: str | None = None,
        timeout: float | None = None,
        *,
        base_url: str | None = None,
        max_retries: int | None = None,
        max_pages: int | None = None,
        max_items: int | None = None,
        settings: Settings | None = None,
    ) -> Self:
        """Merge explicit arguments over environment settings.

        Explicit arguments always win. Anything left unset falls back to
        ``settings`` (read from the environment when not given).
        """
        settings = settings or Settings()
        return cls(
            token=token or settings.token,
            timeout=timeout if timeout is not None else settings.timeout,
            base_url=base_url or settings.base_url or DEFAULT_BASE_URL,
            max_retries=max_retries
            if max_retries is not None
            else settings.max_retries,
            max_pages=max_pages if max_pages is not None else settings.max_pages,
            max_items=max_items if max_items is not None else settings.max_items,
        )


class RequestOptions(BaseModel, frozen=True):
    """Per call parameters."""

    path: str
    token: str | None = Field(default=None, repr=False)
    timeout: float | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    key: str | None = None
    body: Any = None


class Page(BaseModel, frozen=True):
    """One response of a paginated GET.

    Attributes:
        offset: Offset requested for this page
        body: Parsed response body
        more: Server reports more pages, False when missing
        limit: Page size used by the server, 0 when missing
    """

    offset: int
    body: Any
    more: bool = False
    limit: int = 0

    @classmethod
    def from_body(cls, body: Any, offset: int) -> Self:
        if not isinstance(body, dict):
            return cls(offset=offset, body=body)
        return cls(
            offset=offset,
            body=body,
            more=bool(body.get("more")),
            limit=body.get("limit") or 0,
        )

    def extract(self, key: str | None = None) -> list[Any]:
        """Values this page contributes to the aggregated result.

        Without a key the whole body is one element. With a key a list value
        is flattened one level, any other value is a single element (None if
        the key is missing).
        """
        if key is None:
            return [self.body]
        value = self.body.get(key) if isinstance(self.body, dict) else None
        if isinstance(value, list):
            return value
        return [value]


class ApiResponse(BaseModel, frozen=True):
    """Result of a POST, PUT or DELETE call."""

    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)
    key: str | None = None
    body: Any = None
