"""
Shared fixtures for data-verification tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from data_verification import CodeManager, InMemoryCodeRepository, VerificationConfig


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def config():
    return VerificationConfig(
        pass_length=6,
        allowed_symbols="0123456789",
        creation_code_threshold=60,
        limit_per_hour=3,
        password_validation_period=300,
        max_attempts=3,
        reject_exhausted_early=False,
    )


@pytest.fixture
def repository():
    return InMemoryCodeRepository()


@pytest.fixture
def manager(config, repository, clock):
    return CodeManager(config, repository, clock=clock)
