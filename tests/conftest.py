"""Shared pytest fixtures and markers for all tests."""

import pytest

from statecraft.economy.profiles import get_profile
from statecraft.models import City, Country, CountryStats, GameSnapshot


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "storage: marks tests that write to a game store on disk"
    )


def make_stats(country_id="A", turn=1, **overrides):
    """Build a CountryStats row with sensible defaults."""
    data = {
        "country_id": country_id,
        "turn": turn,
        "population": 100000,
        "budget": 5000,
        "technology_level": 1,
        "infrastructure_level": 1,
        "military_strength": 40,
        "resources": {},
    }
    data.update(overrides)
    return CountryStats(**data)


@pytest.fixture
def stats_factory():
    """Provide the make_stats factory to tests."""
    return make_stats


@pytest.fixture
def balanced_profile():
    """Provide the Balanced Nation profile (no modifiers)."""
    return get_profile("Balanced Nation")


@pytest.fixture
def two_country_snapshot():
    """Two AI countries with one city each, no plans and no pending actions."""
    countries = [
        Country(id="A", game_id="g1", name="Avalon"),
        Country(id="B", game_id="g1", name="Brant"),
    ]
    stats = {
        "A": make_stats("A", resources={"food": 500, "steel": 0}),
        "B": make_stats("B", resources={"food": 0, "steel": 80}),
    }
    cities = [
        City(id="a1", game_id="g1", country_id="A", name="Avalon City", population=60000),
        City(id="b1", game_id="g1", country_id="B", name="Brant Hold", population=60000),
    ]
    return GameSnapshot(game_id="g1", turn=1, countries=countries, stats=stats, cities=cities)
