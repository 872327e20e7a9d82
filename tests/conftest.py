from __future__ import annotations

import pytest

from analytics_fixtures import NOW, DeterministicProcessor, make_registry
from learning_analytics.core.ports.clock import FixedClock


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def processor() -> DeterministicProcessor:
    return DeterministicProcessor()


@pytest.fixture
def registry():
    return make_registry()
