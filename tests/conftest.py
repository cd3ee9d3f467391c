"""Shared fixtures for PokeBattle tests."""

import pytest
from sqlmodel import SQLModel, create_engine
from sqlmodel.pool import StaticPool

from pokebattle.data.storage import Storage
from pokebattle.service import BattleService
from tests.factories import FakeRandom


@pytest.fixture
def fake_rng():
    """A random source that always hits and never varies damage."""
    return FakeRandom()


@pytest.fixture
def storage():
    """Storage backed by a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return Storage(engine=engine)


@pytest.fixture
def service(storage, fake_rng):
    """BattleService over the in-memory database with scripted randomness."""
    return BattleService(storage=storage, rng=fake_rng)
