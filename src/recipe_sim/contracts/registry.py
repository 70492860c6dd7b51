"""Action registry and exchange wrapper allow-list."""
from __future__ import annotations

from ..abi import normalize_address
from ..constants import ZERO_ADDRESS
from ..errors import RevertedExecution, Unauthorized
from .base import Contract, Env

__all__ = ["DFSRegistry", "WrapperExchangeRegistry"]


def _only_owner(env: Env, contract: str) -> None:
    if env.sender != env.state.registry_owner:
        raise Unauthorized(f"{contract}: {env.sender} is not the registry owner")


class DFSRegistry(Contract):
    """Maps ``bytes4(keccak256(name))`` ids to deployed logic addresses."""

    name = "DFSRegistry"
    METHODS = {
        "getAddr(bytes4)": "get_addr",
        "isRegistered(bytes4)": "is_registered",
        "addNewContract(bytes4,address)": "add_new_contract",
        "owner()": "owner",
    }

    def owner(self, env: Env) -> str:
        return env.state.registry_owner

    def get_addr(self, env: Env, contract_id: bytes) -> str:
        return env.state.registry.get(bytes(contract_id), ZERO_ADDRESS)

    def is_registered(self, env: Env, contract_id: bytes) -> bool:
        return bytes(contract_id) in env.state.registry

    def add_new_contract(self, env: Env, contract_id: bytes, address: str) -> None:
        _only_owner(env, self.name)
        address = normalize_address(address)
        if address not in env.state.code:
            raise RevertedExecution(f"{self.name}: no contract deployed at {address}")
        env.state.registry[bytes(contract_id)] = address
        env.emit("AddNewContract", id=bytes(contract_id), address=address)


class WrapperExchangeRegistry(Contract):
    name = "WrapperExchangeRegistry"
    METHODS = {
        "addWrapper(address)": "add_wrapper",
        "removeWrapper(address)": "remove_wrapper",
        "isWrapper(address)": "is_wrapper",
    }

    def is_wrapper(self, env: Env, wrapper: str) -> bool:
        return normalize_address(wrapper) in env.state.exchange_wrappers

    def add_wrapper(self, env: Env, wrapper: str) -> None:
        _only_owner(env, self.name)
        env.state.exchange_wrappers.add(normalize_address(wrapper))

    def remove_wrapper(self, env: Env, wrapper: str) -> None:
        _only_owner(env, self.name)
        env.state.exchange_wrappers.discard(normalize_address(wrapper))
