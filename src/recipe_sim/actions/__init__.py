"""Action descriptors and recipe batching."""

from __future__ import annotations

from .base import EXECUTE_ACTION_DIRECT_SIG, EXECUTE_ACTION_SIG, Action, action_id, parse_reference
from .basic import (
    AutomationV2UnsubAction,
    ChangeProxyOwnerAction,
    PullTokenAction,
    SellAction,
    SendTokenAction,
    SubInputsAction,
    SumInputsAction,
    UnwrapEthAction,
    WrapEthAction,
)
from .recipe import EXECUTE_RECIPE_SIG, RECIPE_EXECUTOR, Recipe

AnyAction = (
    WrapEthAction
    | UnwrapEthAction
    | SendTokenAction
    | PullTokenAction
    | SumInputsAction
    | SubInputsAction
    | ChangeProxyOwnerAction
    | AutomationV2UnsubAction
    | SellAction
)

ALL_ACTIONS: dict[str, type[Action]] = {
    "WrapEth": WrapEthAction,
    "UnwrapEth": UnwrapEthAction,
    "SendToken": SendTokenAction,
    "PullToken": PullTokenAction,
    "SumInputs": SumInputsAction,
    "SubInputs": SubInputsAction,
    "ChangeProxyOwner": ChangeProxyOwnerAction,
    "AutomationV2Unsub": AutomationV2UnsubAction,
    "DFSSell": SellAction,
}

__all__ = [
    "ALL_ACTIONS",
    "EXECUTE_ACTION_DIRECT_SIG",
    "EXECUTE_ACTION_SIG",
    "EXECUTE_RECIPE_SIG",
    "RECIPE_EXECUTOR",
    "Action",
    "AnyAction",
    "AutomationV2UnsubAction",
    "ChangeProxyOwnerAction",
    "PullTokenAction",
    "Recipe",
    "SellAction",
    "SendTokenAction",
    "SubInputsAction",
    "SumInputsAction",
    "UnwrapEthAction",
    "WrapEthAction",
    "action_id",
    "parse_reference",
]
