"""
Shared fixtures: the built-in catalog, fake collaborators, and cache
resets so environment overrides in one test never leak into another.
"""

import pytest

from ecocafe.catalog import build_default_catalog, get_catalog
from ecocafe.config import get_settings
from ecocafe.location import Coordinates, GeolocationError
from ecocafe.persistence import InMemoryPersistence, PersistenceError


class FakeGeolocator:
    """
    Counts requests. Answers at once with a fixed position (or an error),
    or, when deferred, holds requests until resolve() / reject().
    """

    def __init__(self, position=Coordinates(lat=37.5, lng=127.0), fail=False, deferred=False):
        self.position = position
        self.fail = fail
        self.deferred = deferred
        self.calls = 0
        self.pending = []

    def request_position(self, on_success, on_error):
        self.calls += 1
        if self.deferred:
            self.pending.append((on_success, on_error))
        elif self.fail:
            on_error(GeolocationError("permission denied"))
        else:
            on_success(self.position)

    def resolve(self, index=0, position=None):
        on_success, _ = self.pending.pop(index)
        on_success(position or self.position)

    def reject(self, index=0):
        _, on_error = self.pending.pop(index)
        on_error(GeolocationError("timeout"))


class FailingPersistence(InMemoryPersistence):
    async def submit_result(self, record):
        raise PersistenceError("store unavailable")

    async def submit_report(self, record):
        raise PersistenceError("store unavailable")

    async def list_results(self):
        raise PersistenceError("store unavailable")


@pytest.fixture(autouse=True)
def _reset_caches():
    get_settings.cache_clear()
    get_catalog.cache_clear()
    yield
    get_settings.cache_clear()
    get_catalog.cache_clear()


@pytest.fixture
def catalog():
    return build_default_catalog()


@pytest.fixture
def geolocator():
    return FakeGeolocator()


@pytest.fixture
def persistence():
    return InMemoryPersistence()


@pytest.fixture
def failing_persistence():
    return FailingPersistence()


@pytest.fixture
def deferred_geolocator():
    return FakeGeolocator(deferred=True)
