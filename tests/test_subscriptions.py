"""Legacy automation unsubscribe for the three protocols."""
from __future__ import annotations

import pytest

from recipe_sim.actions import AutomationV2UnsubAction
from recipe_sim.constants import (
    AAVE_OWNER_ACC,
    AAVE_SUBSCRIPTIONS_ADDR,
    CDP_ID,
    CDP_OWNER_ACC,
    COMPOUND_OWNER_ACC,
    COMPOUND_SUBSCRIPTIONS_ADDR,
    MCD_SUBSCRIPTIONS_ADDR,
)
from recipe_sim.errors import RevertedExecution, Unauthorized
from recipe_sim.harness import automation_v2_unsub, get_proxy, subscription

PROTOCOLS = [
    pytest.param(0, CDP_OWNER_ACC, MCD_SUBSCRIPTIONS_ADDR, id="mcd"),
    pytest.param(1, COMPOUND_OWNER_ACC, COMPOUND_SUBSCRIPTIONS_ADDR, id="compound"),
    pytest.param(2, AAVE_OWNER_ACC, AAVE_SUBSCRIPTIONS_ADDR, id="aave"),
]


def _key(protocol: int, proxy_address: str) -> int | str:
    return CDP_ID if protocol == 0 else proxy_address


@pytest.mark.parametrize(("protocol", "owner", "contract"), PROTOCOLS)
def test_unsubscribe_clears_flag_and_cannot_repeat(fx, protocol, owner, contract):
    proxy = get_proxy(fx.node, owner)
    key = _key(protocol, proxy.address)
    assert subscription(fx.node, contract, key) == (0, True)

    with fx.fork.impersonating(owner):
        automation_v2_unsub(proxy, protocol, CDP_ID if protocol == 0 else 0)
        assert subscription(fx.node, contract, key)[1] is False

        with pytest.raises(RevertedExecution, match="not subscribed"):
            automation_v2_unsub(proxy, protocol, CDP_ID if protocol == 0 else 0)

    assert subscription(fx.node, contract, key)[1] is False


def test_vault_unsubscribe_requires_the_vault_proxy(fx):
    with pytest.raises(Unauthorized):
        fx.proxy.execute_direct(AutomationV2UnsubAction(0, CDP_ID))
    assert subscription(fx.node, MCD_SUBSCRIPTIONS_ADDR, CDP_ID) == (0, True)


def test_unsubscribe_without_subscription_reverts(fx):
    with pytest.raises(RevertedExecution, match="not subscribed"):
        fx.proxy.execute_direct(AutomationV2UnsubAction(1))


def test_unknown_protocol_reverts(fx):
    with pytest.raises(RevertedExecution, match="unknown protocol"):
        fx.proxy.execute_direct(AutomationV2UnsubAction(3))
