"""Configuration management using Pydantic Settings.

This is the only process wide state of the package. It is read when a client
(or the CLI) is constructed and never consulted while handling a request.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings from environment variables (prefix PAGERDUTY_)."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_prefix="PAGERDUTY_",
        populate_by_name=True,
    )

    # API client
    token: str | None = Field(
        default=None,
        # CustomPagerDutyToken is kept for compatibility with older deployments
        validation_alias=AliasChoices("PAGERDUTY_TOKEN", "CustomPagerDutyToken"),
        description="Default PagerDuty access token",
        repr=False,
    )
    timeout: float | None = Field(
        default=None,
        description="Default request timeout in seconds",
    )
    base_url: str | None = Field(
        default=None,
        description="PagerDuty API base URL",
    )
    max_retries: int = Field(
        default=3,
        description="Retries for transient connection failures",
    )
    max_pages: int | None = Field(
        default=None,
        description="Maximum pages fetched by a single GET. None = unbounded",
    )
    max_items: int | None = Field(
        default=None,
        description="Maximum items aggregated by a single GET. None = unbounded",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format_json: bool = Field(
        default=False,
        description="Use JSON logging format",
    )
