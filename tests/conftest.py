"""Pytest configuration and fixtures."""

import pytest

from helpers import DR_JONES, DR_SMITH

from ob_billing.config import Settings
from ob_billing.models.shift import Doctor


@pytest.fixture
def settings() -> Settings:
    """Default fee-schedule settings, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def doctors() -> dict[int, Doctor]:
    return {DR_SMITH.id: DR_SMITH, DR_JONES.id: DR_JONES}
