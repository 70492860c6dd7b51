from __future__ import annotations

import pytest

from recipe_sim.harness import Fixture, build_fixture


@pytest.fixture
def fx() -> Fixture:
    """A fresh fork, sender and proxy for every test."""
    return build_fixture()
