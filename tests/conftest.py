"""Shared fixtures: a Database wired to the in-memory provider."""

import pytest

from pgquery import Database
from pgquery.testing import FakeProvider


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def db(provider: FakeProvider) -> Database:
    return Database(provider=provider)
