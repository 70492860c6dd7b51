"""Scenario parsing, execution and expectation checks."""
from __future__ import annotations

import json

import pytest

from recipe_sim.abi import selector
from recipe_sim.actions import EXECUTE_RECIPE_SIG
from recipe_sim.constants import DEV_ACCOUNTS, MAX_UINT256, WEI_PER_ETHER, WETH_ADDRESS
from recipe_sim.errors import ScenarioError
from recipe_sim.scenario import SetupOp, encode_scenario, parse_amount, parse_scenario, run_scenario

ETHER = WEI_PER_ETHER
RECIPIENT = DEV_ACCOUNTS[1]


def _sum_and_send(**overrides) -> dict:
    doc = {
        "name": "sum-and-send",
        "setup": [
            {"op": "deposit_to_weth", "amount": "10 ether"},
            {"op": "send", "token": "WETH", "to": "proxy", "amount": "10 ether"},
        ],
        "actions": [
            {"action": "SumInputs", "args": {"a": "2 ether", "b": "7 ether"}},
            {"action": "SendToken", "args": {"token": "WETH", "to": RECIPIENT, "amount": "$1"}},
        ],
        "expect": {
            "revert": None,
            "balances": [{"token": "WETH", "holder": "proxy", "amount": "1 ether"}],
            "deltas": [{"token": "WETH", "holder": RECIPIENT, "amount": "9 ether"}],
        },
    }
    doc.update(overrides)
    return doc


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (5, 5),
        ("12", 12),
        ("0x10", 16),
        ("max", MAX_UINT256),
        ("1.5 ether", 3 * ETHER // 2),
        ("2 ETHER", 2 * ETHER),
        ("$3", "$3"),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw, where="amount") == expected


@pytest.mark.parametrize("raw", [-1, "-1 ether", True, "lots", 1.5, "0.0000000000000000001 ether", "$0"])
def test_parse_amount_rejects(raw):
    with pytest.raises(ScenarioError):
        parse_amount(raw, where="amount")


def test_parse_amount_allows_signed_deltas():
    assert parse_amount("-3 ether", where="delta", signed=True) == -3 * ETHER


def test_parse_scenario_builds_typed_structures():
    scenario = parse_scenario(json.dumps(_sum_and_send()))

    assert scenario.name == "sum-and-send"
    assert scenario.target == "RecipeExecutor"
    assert [step.op for step in scenario.setup] == [SetupOp.DEPOSIT_TO_WETH, SetupOp.SEND]
    assert scenario.actions[0].args == {"a": 2 * ETHER, "b": 7 * ETHER}
    assert scenario.actions[1].args["amount"] == "$1"
    assert scenario.expect_revert is None
    assert scenario.tracked_pairs() == [("WETH", "proxy"), ("WETH", RECIPIENT)]


@pytest.mark.parametrize(
    ("doc", "message"),
    [
        ("[]", "root must be an object"),
        ("{", "Invalid scenario JSON"),
        (json.dumps({"actions": [{"action": "SumInputs", "args": {"a": 1, "b": 1}}]}), "name"),
        (json.dumps({"name": "x", "actions": []}), "non-empty list"),
        (json.dumps({"name": "x", "actions": [{"action": "Teleport"}]}), "unknown action"),
        (json.dumps({"name": "x", "actions": [{"action": "SumInputs", "args": {"a": 1}}]}), "missing parameter"),
        (json.dumps({"name": "x", "actions": [{"action": "SumInputs", "args": {"a": 1, "b": 1, "c": 1}}]}), "unknown parameter"),
        (json.dumps({"name": "x", "actions": [{"action": "SendToken", "args": {"token": "BTC", "to": "sender", "amount": 1}}]}), "not an address"),
        (json.dumps({"name": "x", "direct": True, "actions": [{"action": "SumInputs", "args": {"a": 1, "b": 1}}] * 2}), "exactly one"),
        (json.dumps({"name": "x", "direct": "false", "actions": [{"action": "SumInputs", "args": {"a": 1, "b": 1}}]}), "'direct' must be true or false"),
        (json.dumps({"name": "x", "setup": [{"op": "mint"}], "actions": [{"action": "SumInputs", "args": {"a": 1, "b": 1}}]}), "unknown op"),
        (json.dumps({"name": "x", "setup": [{"op": "send_ether", "to": "proxy"}], "actions": [{"action": "SumInputs", "args": {"a": 1, "b": 1}}]}), "missing amount"),
        (json.dumps({"name": "x", "actions": [{"action": "SumInputs", "args": {"a": 1, "b": 1}}], "expect": {"revert": "Boom"}}), "unknown error class"),
    ],
)
def test_parse_scenario_rejects_malformed_documents(doc, message):
    with pytest.raises(ScenarioError, match=message):
        parse_scenario(doc)


def test_run_scenario_passes_when_balances_match():
    result = run_scenario(parse_scenario(json.dumps(_sum_and_send())))

    assert result.passed
    assert not result.reverted
    assert result.outputs == (9 * ETHER, 9 * ETHER)
    rows = {(row.token, row.holder): row for row in result.balances}
    assert rows[("WETH", RECIPIENT)].delta == 9 * ETHER
    assert rows[("WETH", "proxy")].token_address == WETH_ADDRESS


def test_run_scenario_reports_wrong_balance():
    doc = _sum_and_send()
    doc["expect"]["deltas"][0]["amount"] = "8 ether"

    result = run_scenario(parse_scenario(json.dumps(doc)))

    assert not result.passed
    assert result.violations == [f"Delta of {RECIPIENT} in WETH: expected {8 * ETHER}, got {9 * ETHER}"]


def test_expected_revert_leaves_balances_untouched():
    doc = _sum_and_send(
        actions=[
            {"action": "SendToken", "args": {"token": "WETH", "to": RECIPIENT, "amount": "1 ether"}},
            {"action": "SubInputs", "args": {"a": "1 ether", "b": "5 ether"}},
        ],
        expect={
            "revert": "ArithmeticUnderflow",
            "deltas": [{"token": "WETH", "holder": RECIPIENT, "amount": 0}],
        },
    )

    result = run_scenario(parse_scenario(json.dumps(doc)))

    assert result.passed
    assert result.reverted
    assert result.error == "ArithmeticUnderflow"


def test_base_revert_class_matches_any_revert():
    doc = _sum_and_send(
        actions=[{"action": "SubInputs", "args": {"a": 1, "b": 2}}],
        expect={"revert": "RevertedExecution"},
    )
    assert run_scenario(parse_scenario(json.dumps(doc))).passed


def test_unexpected_revert_is_a_violation():
    doc = _sum_and_send(actions=[{"action": "SubInputs", "args": {"a": 1, "b": 2}}], expect={})

    result = run_scenario(parse_scenario(json.dumps(doc)))

    assert not result.passed
    assert "ArithmeticUnderflow" in result.violations[0]


def test_direct_scenario_with_native_value():
    doc = {
        "name": "wrap-direct",
        "direct": True,
        "value": "2 ether",
        "actions": [{"action": "WrapEth", "args": {"amount": "max"}}],
        "expect": {
            "balances": [{"token": "WETH", "holder": "proxy", "amount": "2 ether"}],
            "deltas": [{"token": "ETH", "holder": "sender", "amount": "-2 ether"}],
        },
    }

    result = run_scenario(parse_scenario(json.dumps(doc)))

    assert result.target == "WrapEth"
    assert result.passed, result.violations
    assert result.outputs == (2 * ETHER,)


def test_sell_scenario_with_allow_listed_wrapper():
    doc = {
        "name": "sell-weth",
        "setup": [
            {"op": "set_exchange_wrapper"},
            {"op": "deposit_to_weth", "amount": "1 ether"},
            {"op": "approve", "token": "WETH", "spender": "proxy"},
        ],
        "actions": [
            {
                "action": "DFSSell",
                "args": {
                    "src_token": "WETH",
                    "dest_token": "DAI",
                    "amount": "max",
                    "wrapper": "wrapper",
                    "from_addr": "sender",
                    "to": "proxy",
                },
            },
            {"action": "SendToken", "args": {"token": "DAI", "to": "sender", "amount": "$1"}},
        ],
        "expect": {"deltas": [{"token": "DAI", "holder": "sender", "amount": "3000 ether"}]},
    }

    result = run_scenario(parse_scenario(json.dumps(doc)))

    assert result.passed, result.violations


def test_failing_setup_step_is_a_scenario_error():
    doc = _sum_and_send(setup=[{"op": "send", "token": "DAI", "to": "proxy", "amount": "1 ether"}])
    with pytest.raises(ScenarioError, match="setup step 'send' reverted"):
        run_scenario(parse_scenario(json.dumps(doc)))


def test_encode_scenario_targets_recipe_executor():
    target, payload = encode_scenario(parse_scenario(json.dumps(_sum_and_send())))

    assert target == "RecipeExecutor"
    assert payload[:4] == selector(EXECUTE_RECIPE_SIG)
