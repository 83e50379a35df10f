"""Global test configuration for pagerduty_rest tests."""

import json
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import stamina

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True, scope="session")
def deactivate_retries() -> None:
    """Disable stamina retries globally for all tests.

    Individual retry tests can re-enable with the enable_retry fixture.
    """
    stamina.set_active(False)


@pytest.fixture
def enable_retry() -> Generator[None, None, None]:
    """Enable stamina retry (3 attempts, no wait) for specific tests."""
    stamina.set_active(True)
    stamina.set_testing(True, attempts=3)
    yield
    stamina.set_testing(False)
    stamina.set_active(False)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests must not pick up a token from the developer's environment."""
    for name in (
        "PAGERDUTY_TOKEN",
        "CustomPagerDutyToken",
        "PAGERDUTY_TIMEOUT",
        "PAGERDUTY_BASE_URL",
        "PAGERDUTY_MAX_RETRIES",
        "PAGERDUTY_MAX_PAGES",
        "PAGERDUTY_MAX_ITEMS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fixture_data() -> Callable[[str], Any]:
    def _load(name: str) -> Any:
        return json.loads((FIXTURES_DIR / f"{name}.json").read_text())

    return _load
