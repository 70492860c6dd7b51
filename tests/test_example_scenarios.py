"""The bundled example scenarios must keep passing."""
from __future__ import annotations

from pathlib import Path

import pytest

from recipe_sim.scenario import load_scenario, run_scenario

SCENARIO_DIR = Path(__file__).resolve().parents[1] / "examples" / "scenarios"


@pytest.mark.parametrize("path", sorted(SCENARIO_DIR.glob("*.json")), ids=lambda path: path.stem)
def test_example_scenario_passes(path):
    result = run_scenario(load_scenario(path))
    assert result.passed, result.violations
