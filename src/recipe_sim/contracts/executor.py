"""Recipe executor and the shared action contract base."""
from __future__ import annotations

import logging
from typing import Any, ClassVar

from eth_abi.exceptions import DecodingError

from ..abi import decode_args, encode_call, from_word, to_word
from ..actions.base import EXECUTE_ACTION_DIRECT_SIG, EXECUTE_ACTION_SIG, Action
from ..actions.recipe import EXECUTE_RECIPE_SIG
from ..errors import InvalidReference, RevertedExecution
from .base import Contract, Env

__all__ = ["ActionContract", "RecipeExecutor"]

logger = logging.getLogger(__name__)


class ActionContract(Contract):
    """Logic for one action kind, always run by delegation inside a proxy.

    Parameters are decoded with the ABI types of ``action``; a non-zero
    param mapping ``n`` replaces the literal with the word returned by the
    n-th action of the recipe (1-based).
    """

    action: ClassVar[type[Action]]
    METHODS = {
        EXECUTE_ACTION_SIG: "execute_action",
        EXECUTE_ACTION_DIRECT_SIG: "execute_action_direct",
    }

    @property
    def name(self) -> str:  # type: ignore[override]
        return self.action.action_name

    def execute_action(
        self,
        env: Env,
        call_data: bytes,
        sub_data: tuple[bytes, ...],
        param_mapping: tuple[int, ...],
        return_values: tuple[bytes, ...],
    ) -> bytes:
        params = self._parse_inputs(call_data)
        params = self._resolve(params, param_mapping, return_values)
        result = self.run(env, *params)
        env.emit("ActionEvent", action=self.name, output=result)
        return to_word(result)

    def execute_action_direct(self, env: Env, call_data: bytes) -> int:
        params = self._parse_inputs(call_data)
        result = self.run(env, *params)
        env.emit("ActionDirectEvent", action=self.name, output=result)
        return result

    def run(self, env: Env, *params: Any) -> int:
        raise NotImplementedError

    def _parse_inputs(self, call_data: bytes) -> list[Any]:
        try:
            return list(decode_args(self.action.abi_types(), bytes(call_data)))
        except DecodingError as exc:
            raise RevertedExecution(f"{self.name}: malformed action call data: {exc}") from exc

    def _resolve(
        self,
        params: list[Any],
        param_mapping: tuple[int, ...],
        return_values: tuple[bytes, ...],
    ) -> list[Any]:
        types = self.action.abi_types()
        if len(param_mapping) != len(types):
            raise RevertedExecution(
                f"{self.name}: expected {len(types)} param mapping(s), got {len(param_mapping)}"
            )
        resolved = list(params)
        for idx, (ref, abi_type) in enumerate(zip(param_mapping, types)):
            if ref == 0:
                continue
            if ref > len(return_values):
                raise InvalidReference(
                    f"{self.name}: parameter {idx} references output ${ref} "
                    f"but only {len(return_values)} action(s) have run"
                )
            try:
                resolved[idx] = from_word(bytes(return_values[ref - 1]), abi_type)
            except ValueError as exc:
                raise InvalidReference(f"{self.name}: output ${ref} cannot be used as {abi_type}: {exc}") from exc
        return resolved


class RecipeExecutor(Contract):
    """Runs a recipe's actions in order inside the calling proxy."""

    name = "RecipeExecutor"
    METHODS = {EXECUTE_RECIPE_SIG: "execute_recipe"}

    def execute_recipe(self, env: Env, recipe: tuple[Any, ...]) -> tuple[int, ...]:
        name, call_data, sub_data, action_ids, param_mappings = recipe
        if not (len(call_data) == len(action_ids) == len(param_mappings)):
            raise RevertedExecution(f"{self.name}: recipe '{name}' has mismatched action arrays")
        if not action_ids:
            raise RevertedExecution(f"{self.name}: recipe '{name}' has no actions")

        return_values: list[bytes] = []
        for idx, (raw_id, data, mapping) in enumerate(zip(action_ids, call_data, param_mappings), 1):
            contract_id = bytes(raw_id)
            target = env.state.registry.get(contract_id)
            if target is None:
                raise RevertedExecution(f"{self.name}: action id 0x{contract_id.hex()} is not registered")
            logger.debug("recipe %s: action %d (0x%s) -> %s", name, idx, contract_id.hex(), target)
            word = env.delegate(
                target,
                encode_call(EXECUTE_ACTION_SIG, [bytes(data), list(sub_data), list(mapping), list(return_values)]),
            )
            return_values.append(bytes(word))

        outputs = tuple(int.from_bytes(word, "big") for word in return_values)
        env.emit("RecipeEvent", name=name, outputs=outputs)
        return outputs
