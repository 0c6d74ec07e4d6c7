"""Shared fixtures."""

from datetime import datetime, timezone

import pytest

from grantmatch.models import FundingProgram, UserProfile

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def ontario_profile():
    return UserProfile(
        province="Ontario",
        industries=["retail"],
        funding_needed=20000,
    )


@pytest.fixture
def open_program():
    """Federal, all industries, up to $50k, simple application: 70 points."""
    return FundingProgram(
        id="A",
        name="Canada Small Business Starter",
        industries=["all"],
        funding_max=50000,
        application_complexity=1,
    )
