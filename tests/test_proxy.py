"""Proxy ownership and authorization."""
from __future__ import annotations

import pytest

from recipe_sim.actions import ChangeProxyOwnerAction, SumInputsAction
from recipe_sim.constants import DEV_ACCOUNTS, ETH_ADDR, WEI_PER_ETHER, ZERO_ADDRESS
from recipe_sim.errors import RevertedExecution, Unauthorized
from recipe_sim.harness import balance_of, change_proxy_owner, execute_action, get_addr_from_registry, get_proxy

NEW_OWNER = DEV_ACCOUNTS[1]
STRANGER = DEV_ACCOUNTS[2]


def test_fixture_proxy_is_owned_by_sender(fx):
    assert fx.proxy.owner() == fx.sender


def test_get_proxy_builds_once(fx):
    assert get_proxy(fx.node, fx.sender).address == fx.proxy.address

    other = get_proxy(fx.node, STRANGER)
    assert other.address != fx.proxy.address
    assert other.owner() == STRANGER


def test_change_owner_round_trip_restores_authorization(fx):
    fx.proxy.change_owner(NEW_OWNER)
    assert fx.proxy.owner() == NEW_OWNER

    with pytest.raises(Unauthorized):
        fx.proxy.change_owner(fx.sender)

    change_proxy_owner(fx.proxy.connect(NEW_OWNER), fx.sender)
    assert fx.proxy.owner() == fx.sender
    fx.proxy.execute_direct(SumInputsAction(1, 1))


def test_change_owner_to_zero_address_reverts(fx):
    with pytest.raises(RevertedExecution, match="zero address"):
        fx.proxy.execute_direct(ChangeProxyOwnerAction(ZERO_ADDRESS))
    assert fx.proxy.owner() == fx.sender


def test_non_owner_execute_is_unauthorized_and_changes_nothing(fx):
    block = fx.node.block_number
    before = balance_of(fx.node, ETH_ADDR, STRANGER)

    with pytest.raises(Unauthorized):
        fx.proxy.connect(STRANGER).execute_direct(SumInputsAction(1, 2), value=WEI_PER_ETHER)

    assert fx.node.block_number == block
    assert balance_of(fx.node, ETH_ADDR, STRANGER) == before
    assert balance_of(fx.node, ETH_ADDR, fx.proxy.address) == 0


def test_unknown_signer_cannot_send(fx):
    outsider = DEV_ACCOUNTS[9]
    with pytest.raises(Unauthorized, match="neither a local signer"):
        fx.proxy.connect(outsider).execute_direct(SumInputsAction(1, 2))


def test_execute_requires_a_contract_target(fx):
    with pytest.raises(RevertedExecution, match="target-address-required"):
        fx.proxy.execute(STRANGER, b"\x00" * 4)


def test_execute_action_resolves_target_through_registry(fx):
    receipt = execute_action(fx.proxy, "SumInputs", SumInputsAction(1, 2).encode_for_proxy_call())
    assert receipt.return_value == 3

    with pytest.raises(LookupError, match="not in the registry"):
        get_addr_from_registry(fx.node, "NotRegistered")


def test_only_committed_transactions_leave_receipts(fx):
    committed = fx.proxy.execute_direct(SumInputsAction(1, 2))
    receipts = fx.node.receipts
    assert receipts[-1] == committed

    with pytest.raises(Unauthorized):
        fx.proxy.connect(STRANGER).execute_direct(SumInputsAction(1, 2))

    assert fx.node.receipts == receipts
