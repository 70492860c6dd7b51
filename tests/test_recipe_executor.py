"""Recipe executor: ordering, output references and atomicity."""
from __future__ import annotations

import pytest

from recipe_sim.actions import (
    AutomationV2UnsubAction,
    PullTokenAction,
    Recipe,
    SendTokenAction,
    SubInputsAction,
    SumInputsAction,
    WrapEthAction,
)
from recipe_sim.constants import DEV_ACCOUNTS, ETH_ADDR, MAX_UINT256, WEI_PER_ETHER, WETH_ADDRESS
from recipe_sim.errors import ArithmeticOverflow, ArithmeticUnderflow, InvalidReference
from recipe_sim.harness import approve, balance_of, deposit_to_weth, send

ETHER = WEI_PER_ETHER
RECIPIENT = DEV_ACCOUNTS[1]


def _fund_proxy_with_weth(fx, amount: int) -> None:
    deposit_to_weth(fx.node, fx.sender, amount)
    send(fx.node, WETH_ADDRESS, fx.sender, fx.proxy.address, amount)


def test_sum_output_feeds_the_next_action(fx):
    _fund_proxy_with_weth(fx, 10 * ETHER)
    recipe = Recipe(
        "sum-and-send",
        [SumInputsAction(2 * ETHER, 7 * ETHER), SendTokenAction(WETH_ADDRESS, RECIPIENT, "$1")],
    )

    receipt = fx.proxy.execute_recipe(recipe)

    assert receipt.return_value == (9 * ETHER, 9 * ETHER)
    assert balance_of(fx.node, WETH_ADDRESS, RECIPIENT) == 9 * ETHER
    assert balance_of(fx.node, WETH_ADDRESS, fx.proxy.address) == ETHER
    (event,) = receipt.events_named("RecipeEvent")
    assert event.args["name"] == "sum-and-send"


def test_sub_output_feeds_the_next_action(fx):
    _fund_proxy_with_weth(fx, 10 * ETHER)
    recipe = Recipe(
        "sub-and-send",
        [SubInputsAction(9 * ETHER, 2 * ETHER), SendTokenAction(WETH_ADDRESS, RECIPIENT, "$1")],
    )

    fx.proxy.execute_recipe(recipe)

    assert balance_of(fx.node, WETH_ADDRESS, RECIPIENT) == 7 * ETHER


def test_underflow_reverts_the_whole_recipe(fx):
    _fund_proxy_with_weth(fx, 10 * ETHER)
    block = fx.node.block_number
    recipe = Recipe(
        "sub-underflow",
        [SendTokenAction(WETH_ADDRESS, RECIPIENT, ETHER), SubInputsAction(ETHER, 5 * ETHER)],
    )

    with pytest.raises(ArithmeticUnderflow):
        fx.proxy.execute_recipe(recipe)

    assert fx.node.block_number == block
    assert balance_of(fx.node, WETH_ADDRESS, RECIPIENT) == 0
    assert balance_of(fx.node, WETH_ADDRESS, fx.proxy.address) == 10 * ETHER


def test_overflow_reverts(fx):
    recipe = Recipe("sum-overflow", [SumInputsAction(MAX_UINT256, 1)])
    with pytest.raises(ArithmeticOverflow):
        fx.proxy.execute_recipe(recipe)


def test_sum_at_the_width_limit_succeeds(fx):
    receipt = fx.proxy.execute_recipe(Recipe("sum-edge", [SumInputsAction(MAX_UINT256 - 1, 1)]))
    assert receipt.return_value == (MAX_UINT256,)


def test_forward_reference_is_rejected(fx):
    recipe = Recipe("forward", [SumInputsAction("$2", 1), SumInputsAction(1, 1)])
    with pytest.raises(InvalidReference):
        fx.proxy.execute_recipe(recipe)


def test_revert_after_wrap_restores_native_and_wrapped_balances(fx):
    sender_eth = balance_of(fx.node, ETH_ADDR, fx.sender)
    recipe = Recipe("wrap-then-fail", [WrapEthAction(ETHER), SubInputsAction(0, 1)])

    with pytest.raises(ArithmeticUnderflow):
        fx.proxy.execute_recipe(recipe, value=ETHER)

    assert balance_of(fx.node, ETH_ADDR, fx.sender) == sender_eth
    assert balance_of(fx.node, ETH_ADDR, fx.proxy.address) == 0
    assert balance_of(fx.node, WETH_ADDRESS, fx.proxy.address) == 0


def test_each_action_emits_an_event(fx):
    receipt = fx.proxy.execute_recipe(Recipe("two", [SumInputsAction(1, 2), SubInputsAction("$1", 1)]))
    outputs = [event.args["output"] for event in receipt.events_named("ActionEvent")]
    assert outputs == [3, 2]


def _approve_proxy_for_weth(fx, amount: int) -> None:
    deposit_to_weth(fx.node, fx.sender, amount)
    approve(fx.node, WETH_ADDRESS, fx.sender, fx.proxy.address)


@pytest.mark.parametrize(
    ("first", "pulled"),
    [
        (SumInputsAction(2 * ETHER, 7 * ETHER), 9 * ETHER),
        (SubInputsAction(9 * ETHER, 2 * ETHER), 7 * ETHER),
    ],
    ids=["sum", "sub"],
)
def test_computed_output_drives_a_pull_from_the_sender(fx, first, pulled):
    _approve_proxy_for_weth(fx, 10 * ETHER)
    recipe = Recipe("compute-and-pull", [first, PullTokenAction(WETH_ADDRESS, fx.sender, "$1")])

    receipt = fx.proxy.execute_recipe(recipe)

    assert receipt.return_value == (pulled, pulled)
    assert balance_of(fx.node, WETH_ADDRESS, fx.proxy.address) == pulled
    assert balance_of(fx.node, WETH_ADDRESS, fx.sender) == 10 * ETHER - pulled


def test_overflowing_sum_never_reaches_the_pull(fx):
    _approve_proxy_for_weth(fx, 10 * ETHER)
    block = fx.node.block_number
    recipe = Recipe(
        "overflow-and-pull",
        [SumInputsAction(ETHER, MAX_UINT256), PullTokenAction(WETH_ADDRESS, fx.sender, "$1")],
    )

    with pytest.raises(ArithmeticOverflow):
        fx.proxy.execute_recipe(recipe)

    assert fx.node.block_number == block
    assert balance_of(fx.node, WETH_ADDRESS, fx.proxy.address) == 0
    assert balance_of(fx.node, WETH_ADDRESS, fx.sender) == 10 * ETHER


def test_reference_that_does_not_fit_the_parameter_type_is_rejected(fx):
    recipe = Recipe("too-wide", [SumInputsAction(200, 100), AutomationV2UnsubAction("$1", 0)])
    with pytest.raises(InvalidReference, match="uint8"):
        fx.proxy.execute_recipe(recipe)
