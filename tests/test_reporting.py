"""Tests for report output consistency."""
from __future__ import annotations

import json

from recipe_sim.constants import DEV_ACCOUNTS, MAX_UINT256, WETH_ADDRESS
from recipe_sim.report.generator import ReportGenerator
from recipe_sim.scenario import BalanceRow, ScenarioResult


def _result(**overrides) -> ScenarioResult:
    values = {
        "name": "demo",
        "target": "RecipeExecutor",
        "sender": DEV_ACCOUNTS[0],
        "proxy": DEV_ACCOUNTS[5],
        "block_number": 14_368_072,
        "outputs": (9, MAX_UINT256),
        "balances": [
            BalanceRow(
                token="WETH",
                holder="proxy",
                token_address=WETH_ADDRESS,
                holder_address=DEV_ACCOUNTS[5],
                before=10,
                after=1,
            )
        ],
    }
    values.update(overrides)
    return ScenarioResult(**values)


def test_report_dict_keeps_large_values_exact():
    report = ReportGenerator("demo").to_dict(_result())

    assert report["scenario"] == "demo"
    assert report["outcome"]["reverted"] is False
    assert report["outcome"]["outputs"] == ["9", str(MAX_UINT256)]
    assert report["balances"][0]["delta"] == "-9"
    assert report["expectations"] == {"passed": True, "violations": []}


def test_report_json_round_trips():
    text = ReportGenerator("demo").to_json(_result(violations=["bad balance"]))
    payload = json.loads(text)

    assert payload["expectations"]["passed"] is False
    assert payload["expectations"]["violations"] == ["bad balance"]


def test_markdown_lists_revert_and_balances():
    result = _result(reverted=True, error="ArithmeticUnderflow", reason="SubInputs: 1 - 5 underflows uint256")
    markdown = ReportGenerator("demo").to_markdown(result)

    assert markdown.startswith("# Recipe Report: demo")
    assert "- **Outcome:** reverted (ArithmeticUnderflow)" in markdown
    assert "| WETH | proxy | 10 | 1 | -9 |" in markdown
    assert "- **Passed:** Yes" in markdown


def test_markdown_prints_max_amounts_symbolically():
    row = BalanceRow(
        token="DAI",
        holder="sender",
        token_address=WETH_ADDRESS,
        holder_address=DEV_ACCOUNTS[0],
        before=0,
        after=MAX_UINT256,
    )
    markdown = ReportGenerator("demo").to_markdown(_result(balances=[row]))
    assert f"| DAI | sender | 0 | max | {MAX_UINT256} |" in markdown
