"""Scenario documents: parse, run and check expectations."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import MISSING, dataclass, field, fields, replace
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from pathlib import Path
from typing import Any

from eth_utils import is_address, to_checksum_address

from . import errors
from .actions import ALL_ACTIONS, RECIPE_EXECUTOR, Action, Recipe, parse_reference
from .config import HarnessConfig
from .constants import MAX_UINT256, TOKEN_SYMBOLS, WEI_PER_ETHER
from .errors import ActionEncodingError, RevertedExecution, ScenarioError
from .harness import (
    Fixture,
    approve,
    build_fixture,
    deposit_to_weth,
    get_addr_from_registry,
    send,
    send_ether,
    set_new_exchange_wrapper,
)

__all__ = [
    "ActionSpec",
    "BalanceCheck",
    "BalanceRow",
    "Scenario",
    "ScenarioResult",
    "SetupOp",
    "SetupStep",
    "build_actions",
    "encode_scenario",
    "load_scenario",
    "parse_amount",
    "parse_scenario",
    "resolve_address",
    "run_scenario",
]

logger = logging.getLogger(__name__)

_ETHER_RE = re.compile(r"^(-?\d+(?:\.\d+)?)\s*ether$", re.IGNORECASE)

# Holder aliases resolved against the fixture.
HOLDER_ALIASES = ("sender", "proxy", "wrapper")

REVERT_CLASSES: dict[str, type[RevertedExecution]] = {
    name: cls
    for name, cls in vars(errors).items()
    if isinstance(cls, type) and issubclass(cls, RevertedExecution)
}


class SetupOp(StrEnum):
    SET_BALANCE = "set_balance"
    DEPOSIT_TO_WETH = "deposit_to_weth"
    APPROVE = "approve"
    SEND = "send"
    SEND_ETHER = "send_ether"
    IMPERSONATE = "impersonate"
    SET_EXCHANGE_WRAPPER = "set_exchange_wrapper"


_SETUP_FIELDS: dict[SetupOp, tuple[tuple[str, ...], tuple[str, ...]]] = {
    # op: (required, optional)
    SetupOp.SET_BALANCE: (("token", "holder", "amount"), ()),
    SetupOp.DEPOSIT_TO_WETH: (("amount",), ("from",)),
    SetupOp.APPROVE: (("token", "spender"), ("owner", "amount")),
    SetupOp.SEND: (("token", "to", "amount"), ("from",)),
    SetupOp.SEND_ETHER: (("to", "amount"), ("from",)),
    SetupOp.IMPERSONATE: (("account",), ()),
    SetupOp.SET_EXCHANGE_WRAPPER: ((), ("wrapper",)),
}

_AMOUNT_KEYS = {"amount"}


@dataclass(slots=True, frozen=True)
class SetupStep:
    op: SetupOp
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ActionSpec:
    """An action by registry name with amounts parsed and addresses left symbolic."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class BalanceCheck:
    token: str
    holder: str
    amount: int


@dataclass(slots=True)
class Scenario:
    name: str
    actions: list[ActionSpec]
    fork_block: int | None = None
    signer_index: int = 0
    setup: list[SetupStep] = field(default_factory=list)
    direct: bool = False
    value: int = 0
    track: list[tuple[str, str]] = field(default_factory=list)
    expect_revert: str | None = None
    expect_balances: list[BalanceCheck] = field(default_factory=list)
    expect_deltas: list[BalanceCheck] = field(default_factory=list)

    @property
    def target(self) -> str:
        """Registry name of the contract the proxy executes."""
        return self.actions[0].name if self.direct else RECIPE_EXECUTOR

    def tracked_pairs(self) -> list[tuple[str, str]]:
        pairs = list(self.track)
        for check in (*self.expect_balances, *self.expect_deltas):
            pair = (check.token, check.holder)
            if pair not in pairs:
                pairs.append(pair)
        return pairs


@dataclass(slots=True, frozen=True)
class BalanceRow:
    token: str
    holder: str
    token_address: str
    holder_address: str
    before: int
    after: int

    @property
    def delta(self) -> int:
        return self.after - self.before


@dataclass(slots=True)
class ScenarioResult:
    name: str
    target: str
    sender: str
    proxy: str
    block_number: int
    reverted: bool = False
    error: str | None = None
    reason: str | None = None
    outputs: tuple[int, ...] = ()
    balances: list[BalanceRow] = field(default_factory=list)
    violations: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.violations


def parse_amount(value: Any, *, where: str, signed: bool = False) -> int | str:
    """Parse an integer, a decimal string, ``"max"``, ``"<n> ether"`` or a ``"$n"`` reference."""
    if isinstance(value, bool):
        raise ScenarioError(f"{where}: amount must be a number, got a boolean")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            if parse_reference(text) is not None:
                return text
        except ActionEncodingError as exc:
            raise ScenarioError(f"{where}: {exc}") from exc
        if text.lower() == "max":
            return MAX_UINT256
        match = _ETHER_RE.match(text)
        try:
            if match is not None:
                scaled = Decimal(match.group(1)) * WEI_PER_ETHER
                if scaled != scaled.to_integral_value():
                    raise ScenarioError(f"{where}: '{value}' has more decimals than wei allow")
                amount = int(scaled)
            else:
                amount = int(text, 0)
        except (InvalidOperation, ValueError) as exc:
            raise ScenarioError(f"{where}: invalid amount '{value}'") from exc
    else:
        raise ScenarioError(f"{where}: amount must be a number or string, got {type(value).__name__}")
    if amount < 0 and not signed:
        raise ScenarioError(f"{where}: amount must be non-negative, got {amount}")
    if abs(amount) > MAX_UINT256:
        raise ScenarioError(f"{where}: amount {amount} does not fit uint256")
    return amount


def _parse_address_ref(value: Any, *, where: str, references: bool = False) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ScenarioError(f"{where}: expected an address, token symbol or holder alias")
    text = value.strip()
    try:
        is_reference = parse_reference(text) is not None
    except ActionEncodingError as exc:
        raise ScenarioError(f"{where}: {exc}") from exc
    if is_reference and not references:
        raise ScenarioError(f"{where}: output references are only allowed in action parameters")
    if is_reference or text in HOLDER_ALIASES or text.upper() in TOKEN_SYMBOLS:
        return text
    if not is_address(text):
        raise ScenarioError(f"{where}: '{text}' is not an address, token symbol or holder alias")
    return to_checksum_address(text)


def _parse_action(raw: Any, idx: int) -> ActionSpec:
    where = f"actions[{idx}]"
    if not isinstance(raw, dict):
        raise ScenarioError(f"{where}: expected an object")
    name = raw.get("action")
    action_cls = ALL_ACTIONS.get(name) if isinstance(name, str) else None
    if action_cls is None:
        allowed = ", ".join(sorted(ALL_ACTIONS))
        raise ScenarioError(f"{where}: unknown action {name!r}. Allowed: {allowed}.")
    raw_args = raw.get("args", {})
    if not isinstance(raw_args, dict):
        raise ScenarioError(f"{where}.args: expected an object")

    declared = {f.name: f for f in fields(action_cls)}
    unknown = sorted(set(raw_args) - set(declared))
    if unknown:
        raise ScenarioError(f"{where}: unknown parameter(s) for {name}: {', '.join(unknown)}")
    args: dict[str, Any] = {}
    for (param, spec), abi_type in zip(declared.items(), action_cls.abi_types()):
        if param not in raw_args:
            if spec.default is MISSING:
                raise ScenarioError(f"{where}: {name} is missing parameter '{param}'")
            continue
        if abi_type == "address":
            args[param] = _parse_address_ref(raw_args[param], where=f"{where}.{param}", references=True)
        else:
            args[param] = parse_amount(raw_args[param], where=f"{where}.{param}")
    return ActionSpec(name=name, args=args)


def _parse_setup(raw: Any, idx: int) -> SetupStep:
    where = f"setup[{idx}]"
    if not isinstance(raw, dict):
        raise ScenarioError(f"{where}: expected an object")
    try:
        op = SetupOp(raw.get("op"))
    except ValueError as exc:
        allowed = ", ".join(item.value for item in SetupOp)
        raise ScenarioError(f"{where}: unknown op {raw.get('op')!r}. Allowed: {allowed}.") from exc
    required, optional = _SETUP_FIELDS[op]
    given = set(raw) - {"op"}
    missing = [key for key in required if key not in given]
    if missing:
        raise ScenarioError(f"{where}: {op} is missing {', '.join(missing)}")
    unknown = sorted(given - set(required) - set(optional))
    if unknown:
        raise ScenarioError(f"{where}: unknown field(s) for {op}: {', '.join(unknown)}")
    args = {
        key: (
            parse_amount(raw[key], where=f"{where}.{key}")
            if key in _AMOUNT_KEYS
            else _parse_address_ref(raw[key], where=f"{where}.{key}")
        )
        for key in given
    }
    if isinstance(args.get("amount"), str):
        raise ScenarioError(f"{where}.amount: references are not allowed in setup steps")
    return SetupStep(op=op, args=args)


def _parse_checks(raw: Any, where: str, *, signed: bool) -> list[BalanceCheck]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ScenarioError(f"{where}: expected a list")
    checks: list[BalanceCheck] = []
    for idx, item in enumerate(raw):
        item_where = f"{where}[{idx}]"
        if not isinstance(item, dict) or not {"token", "holder", "amount"} <= set(item):
            raise ScenarioError(f"{item_where}: expected an object with token, holder and amount")
        amount = parse_amount(item["amount"], where=f"{item_where}.amount", signed=signed)
        if isinstance(amount, str):
            raise ScenarioError(f"{item_where}.amount: references are not allowed in expectations")
        checks.append(
            BalanceCheck(
                token=_parse_address_ref(item["token"], where=f"{item_where}.token"),
                holder=_parse_address_ref(item["holder"], where=f"{item_where}.holder"),
                amount=amount,
            )
        )
    return checks


def _parse_int(payload: dict[str, Any], key: str, default: int | None) -> int | None:
    value = payload.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ScenarioError(f"'{key}' must be a non-negative integer")
    return value


def parse_scenario(raw_json: str) -> Scenario:
    """Parse a scenario JSON document into typed structures."""
    try:
        payload = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise ScenarioError(f"Invalid scenario JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ScenarioError("Scenario root must be an object")

    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ScenarioError("Scenario 'name' must be a non-empty string")

    raw_actions = payload.get("actions")
    if not isinstance(raw_actions, list) or not raw_actions:
        raise ScenarioError("Scenario 'actions' must be a non-empty list")
    actions = [_parse_action(item, idx) for idx, item in enumerate(raw_actions)]

    direct = payload.get("direct", False)
    if not isinstance(direct, bool):
        raise ScenarioError("'direct' must be true or false")
    if direct and len(actions) != 1:
        raise ScenarioError("A direct scenario takes exactly one action")

    raw_setup = payload.get("setup", [])
    if not isinstance(raw_setup, list):
        raise ScenarioError("Scenario 'setup' must be a list")

    raw_track = payload.get("track", [])
    if not isinstance(raw_track, list):
        raise ScenarioError("Scenario 'track' must be a list")
    track: list[tuple[str, str]] = []
    for idx, item in enumerate(raw_track):
        if not isinstance(item, dict) or not {"token", "holder"} <= set(item):
            raise ScenarioError(f"track[{idx}]: expected an object with token and holder")
        track.append(
            (
                _parse_address_ref(item["token"], where=f"track[{idx}].token"),
                _parse_address_ref(item["holder"], where=f"track[{idx}].holder"),
            )
        )

    expect = payload.get("expect", {})
    if not isinstance(expect, dict):
        raise ScenarioError("Scenario 'expect' must be an object")
    expect_revert = expect.get("revert")
    if expect_revert is not None and expect_revert not in REVERT_CLASSES:
        allowed = ", ".join(sorted(REVERT_CLASSES))
        raise ScenarioError(f"expect.revert: unknown error class {expect_revert!r}. Allowed: {allowed}.")

    value = parse_amount(payload.get("value", 0), where="value")
    if isinstance(value, str):
        raise ScenarioError("value: references are not allowed here")

    return Scenario(
        name=name.strip(),
        actions=actions,
        fork_block=_parse_int(payload, "fork_block", None),
        signer_index=_parse_int(payload, "signer_index", 0) or 0,
        setup=[_parse_setup(item, idx) for idx, item in enumerate(raw_setup)],
        direct=direct,
        value=value,
        track=track,
        expect_revert=expect_revert,
        expect_balances=_parse_checks(expect.get("balances"), "expect.balances", signed=False),
        expect_deltas=_parse_checks(expect.get("deltas"), "expect.deltas", signed=True),
    )


def load_scenario(path: str | Path) -> Scenario:
    try:
        raw = Path(path).read_text()
    except OSError as exc:
        raise ScenarioError(f"Cannot read scenario {path}: {exc}") from exc
    return parse_scenario(raw)


def resolve_address(value: str, fixture: Fixture) -> str:
    """Resolve a holder alias or token symbol against *fixture*."""
    if value == "sender":
        return fixture.sender
    if value == "proxy":
        return fixture.proxy.address
    if value == "wrapper":
        return get_addr_from_registry(fixture.node, "FixedRateWrapper")
    if value.upper() in TOKEN_SYMBOLS:
        return TOKEN_SYMBOLS[value.upper()]
    return value


def build_actions(scenario: Scenario, fixture: Fixture) -> list[Action]:
    built: list[Action] = []
    for idx, spec in enumerate(scenario.actions):
        action_cls = ALL_ACTIONS[spec.name]
        kwargs = {}
        for param, abi_type in zip(action_cls.param_names(), action_cls.abi_types()):
            if param not in spec.args:
                continue
            value = spec.args[param]
            if abi_type == "address" and parse_reference(value) is None:
                value = resolve_address(value, fixture)
            kwargs[param] = value
        try:
            built.append(action_cls(**kwargs))
        except ActionEncodingError as exc:
            raise ScenarioError(f"actions[{idx}]: {exc}") from exc
    return built


def _calldata(scenario: Scenario, fixture: Fixture) -> bytes:
    actions = build_actions(scenario, fixture)
    try:
        if scenario.direct:
            return actions[0].encode_for_proxy_call()
        return Recipe(scenario.name, actions).encode_for_proxy_call()
    except ActionEncodingError as exc:
        raise ScenarioError(str(exc)) from exc


def _fixture_for(scenario: Scenario, config: HarnessConfig | None) -> Fixture:
    config = config or HarnessConfig()
    if scenario.fork_block is not None:
        config = replace(config, fork_block=scenario.fork_block)
    if scenario.signer_index >= config.signer_count:
        raise ScenarioError(
            f"signer_index {scenario.signer_index} is out of range for {config.signer_count} signer(s)"
        )
    return build_fixture(config, signer_index=scenario.signer_index)


def encode_scenario(scenario: Scenario, config: HarnessConfig | None = None) -> tuple[str, bytes]:
    """Return the registry name the proxy executes and the payload it is given."""
    fixture = _fixture_for(scenario, config)
    return scenario.target, _calldata(scenario, fixture)


def _apply_setup(step: SetupStep, fixture: Fixture) -> None:
    args = {key: resolve_address(value, fixture) if isinstance(value, str) else value for key, value in step.args.items()}
    node = fixture.node
    sender = args.get("from", fixture.sender)
    logger.debug("setup %s %s", step.op, args)
    if step.op is SetupOp.SET_BALANCE:
        fixture.fork.set_balance(args["token"], args["holder"], args["amount"])
    elif step.op is SetupOp.DEPOSIT_TO_WETH:
        deposit_to_weth(node, sender, args["amount"])
    elif step.op is SetupOp.APPROVE:
        approve(node, args["token"], args.get("owner", fixture.sender), args["spender"], args.get("amount", MAX_UINT256))
    elif step.op is SetupOp.SEND:
        send(node, args["token"], sender, args["to"], args["amount"])
    elif step.op is SetupOp.SEND_ETHER:
        send_ether(node, sender, args["to"], args["amount"])
    elif step.op is SetupOp.IMPERSONATE:
        fixture.fork.impersonate(args["account"])
    elif step.op is SetupOp.SET_EXCHANGE_WRAPPER:
        set_new_exchange_wrapper(fixture.fork, args.get("wrapper", resolve_address("wrapper", fixture)))


def _check(scenario: Scenario, result: ScenarioResult, exc: RevertedExecution | None) -> list[str]:
    violations: list[str] = []
    if scenario.expect_revert is None and exc is not None:
        violations.append(f"Expected success but execution reverted with {type(exc).__name__}: {exc.reason}")
    elif scenario.expect_revert is not None:
        if exc is None:
            violations.append(f"Expected a {scenario.expect_revert} revert but execution succeeded")
        elif scenario.expect_revert not in {cls.__name__ for cls in type(exc).__mro__}:
            violations.append(f"Expected a {scenario.expect_revert} revert but got {type(exc).__name__}: {exc.reason}")

    rows = {(row.token, row.holder): row for row in result.balances}
    for check in scenario.expect_balances:
        row = rows[(check.token, check.holder)]
        if row.after != check.amount:
            violations.append(f"Balance of {check.holder} in {check.token}: expected {check.amount}, got {row.after}")
    for check in scenario.expect_deltas:
        row = rows[(check.token, check.holder)]
        if row.delta != check.amount:
            violations.append(f"Delta of {check.holder} in {check.token}: expected {check.amount}, got {row.delta}")
    return violations


def run_scenario(scenario: Scenario, config: HarnessConfig | None = None) -> ScenarioResult:
    """Run *scenario* on a fresh fixture and evaluate its expectations."""
    fixture = _fixture_for(scenario, config)
    for step in scenario.setup:
        try:
            _apply_setup(step, fixture)
        except RevertedExecution as exc:
            raise ScenarioError(f"setup step '{step.op}' reverted: {exc.reason}") from exc

    pairs = [(token, holder, resolve_address(token, fixture), resolve_address(holder, fixture))
             for token, holder in scenario.tracked_pairs()]
    before = [fixture.node.balance_of(token_addr, holder_addr) for _, _, token_addr, holder_addr in pairs]
    calldata = _calldata(scenario, fixture)

    result = ScenarioResult(
        name=scenario.name,
        target=scenario.target,
        sender=fixture.sender,
        proxy=fixture.proxy.address,
        block_number=fixture.node.block_number,
    )
    error: RevertedExecution | None = None
    try:
        receipt = fixture.proxy.execute_action(scenario.target, calldata, value=scenario.value)
    except RevertedExecution as exc:
        error = exc
        result.reverted = True
        result.error = type(exc).__name__
        result.reason = exc.reason
    else:
        output = receipt.return_value
        result.outputs = tuple(output) if isinstance(output, tuple) else (int(output or 0),)
        result.block_number = receipt.block_number

    result.balances = [
        BalanceRow(
            token=token,
            holder=holder,
            token_address=token_addr,
            holder_address=holder_addr,
            before=prior,
            after=fixture.node.balance_of(token_addr, holder_addr),
        )
        for (token, holder, token_addr, holder_addr), prior in zip(pairs, before)
    ]
    result.violations = _check(scenario, result, error)
    logger.info("scenario %s: %s", scenario.name, "passed" if result.passed else "failed")
    return result
