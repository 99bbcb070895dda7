from __future__ import annotations

import pytest

from fakes import FakeImageProvider, FakeLocationProvider, MemoryObstacleStore, StepClock
from route_obstacles.domain.services.obstacle_registry import ObstacleRegistry


@pytest.fixture
def store() -> MemoryObstacleStore:
    return MemoryObstacleStore()


@pytest.fixture
def location() -> FakeLocationProvider:
    return FakeLocationProvider()


@pytest.fixture
def images() -> FakeImageProvider:
    return FakeImageProvider()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def registry(store, location, images, clock) -> ObstacleRegistry:
    return ObstacleRegistry(store, location, images, clock=clock)
