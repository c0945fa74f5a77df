from __future__ import annotations

import pytest

from delve import config
from delve.module import Module
from delve.util.rng import ReproducibleRandom
from tests.helpers import make_module


@pytest.fixture
def module() -> Module:
    """A small stone dungeon module."""
    return make_module()


@pytest.fixture
def rand() -> ReproducibleRandom:
    """Random source seeded with the default seed."""
    return ReproducibleRandom(config.RANDOM_SEED)
