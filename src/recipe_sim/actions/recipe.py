"""Recipe batching."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from ..abi import encode_call
from ..errors import ActionEncodingError
from .base import Action

__all__ = ["EXECUTE_RECIPE_SIG", "RECIPE_EXECUTOR", "Recipe"]

EXECUTE_RECIPE_SIG = "executeRecipe((string,bytes[],bytes32[],bytes4[],uint8[][]))"
RECIPE_EXECUTOR = "RecipeExecutor"


@dataclass(frozen=True, slots=True, init=False)
class Recipe:
    """Named, ordered batch of actions executed atomically by the recipe executor."""

    name: str
    actions: tuple[Action, ...]

    def __init__(self, name: str, actions: Iterable[Action]) -> None:
        items = tuple(actions)
        if not name:
            raise ActionEncodingError("Recipe name must be non-empty")
        if not items:
            raise ActionEncodingError(f"Recipe '{name}' must contain at least one action")
        for item in items:
            if not isinstance(item, Action):
                raise ActionEncodingError(f"Recipe '{name}' got a non-action item: {item!r}")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "actions", items)

    def __len__(self) -> int:
        return len(self.actions)

    def encode_recipe(self) -> tuple[str, list[bytes], list[bytes], list[bytes], list[list[int]]]:
        return (
            self.name,
            [action.encode_call_data() for action in self.actions],
            [],
            [action.action_id for action in self.actions],
            [list(action.param_mapping()) for action in self.actions],
        )

    def encode_for_proxy_call(self) -> bytes:
        """Calldata for ``RecipeExecutor.executeRecipe`` run through a proxy."""
        return encode_call(EXECUTE_RECIPE_SIG, [self.encode_recipe()])

    def describe(self) -> dict[str, Any]:
        return {"name": self.name, "actions": [action.describe() for action in self.actions]}
