"""CLI entry point for recipe-sim."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .actions import ALL_ACTIONS, action_id
from .config import HarnessConfig, load_config
from .errors import ConfigError, ScenarioError
from .report.generator import ReportGenerator, format_amount
from .scenario import ScenarioResult, encode_scenario, load_scenario, run_scenario

console = Console()


def _configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _resolve_config(config_file: str | None, fork_block: int | None, log_level: str | None) -> HarnessConfig:
    try:
        return load_config(config_file, fork_block=fork_block, log_level=log_level)
    except ConfigError as exc:
        console.print(f"[red]Invalid configuration: {exc}[/]")
        sys.exit(1)


def _balance_table(result: ScenarioResult) -> Table:
    table = Table(title="Tracked Balances")
    table.add_column("Token", style="bold")
    table.add_column("Holder")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")
    table.add_column("Delta", justify="right")
    for row in result.balances:
        color = "green" if row.delta > 0 else "red" if row.delta < 0 else "white"
        table.add_row(
            row.token,
            row.holder,
            format_amount(row.before),
            format_amount(row.after),
            f"[{color}]{row.delta}[/]",
        )
    return table


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Recipe execution and balance assertion harness for proxy-batched actions."""


@main.command()
@click.argument("scenario_file", type=click.Path(exists=True))
@click.option("--config", "-c", "config_file", type=click.Path(exists=True), help="Config JSON file")
@click.option("--output", "-o", type=click.Path(), help="Output file path")
@click.option("--format", "fmt", type=click.Choice(["json", "markdown"]), default="markdown")
@click.option("--fork-block", type=int, default=None, help="Block height to fork from")
@click.option(
    "--log-level",
    type=click.Choice(["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"], case_sensitive=False),
    default=None,
    help="Log level for harness logs on stderr.",
)
def run(
    scenario_file: str,
    config_file: str | None,
    output: str | None,
    fmt: str,
    fork_block: int | None,
    log_level: str | None,
) -> None:
    """Run a scenario and check its balance expectations."""
    config = _resolve_config(config_file, fork_block, log_level)
    _configure_logging(config.logging_level)

    console.print(f"[bold blue]recipe-sim v{__version__}[/]")
    try:
        scenario = load_scenario(scenario_file)
    except ScenarioError as exc:
        console.print(f"[red]Failed to parse scenario: {exc}[/]")
        sys.exit(1)

    console.print(f"Scenario: {scenario.name}")
    console.print(f"  Target: {scenario.target}")
    console.print(f"  Actions: {len(scenario.actions)}")
    console.print(f"  Setup steps: {len(scenario.setup)}\n")

    try:
        with console.status("[bold green]Executing recipe..."):
            result = run_scenario(scenario, config)
    except ScenarioError as exc:
        console.print(f"[red]Invalid scenario: {exc}[/]")
        sys.exit(1)

    if result.reverted:
        console.print(f"[yellow]Reverted with {result.error}: {result.reason}[/]\n")
    else:
        console.print(f"[green]Executed at block {result.block_number}[/]\n")
    if result.balances:
        console.print(_balance_table(result))

    gen = ReportGenerator(scenario.name)
    report = gen.to_json(result) if fmt == "json" else gen.to_markdown(result)
    if output:
        Path(output).write_text(report)
        console.print(f"[green]Report saved to {output}[/]")
    else:
        console.print(report)
    if not result.passed:
        for violation in result.violations:
            console.print(f"[red]{violation}[/]")
        sys.exit(3)


@main.command()
@click.argument("scenario_file", type=click.Path(exists=True))
@click.option("--config", "-c", "config_file", type=click.Path(exists=True), help="Config JSON file")
def encode(scenario_file: str, config_file: str | None) -> None:
    """Print the registry target and the hex payload of a scenario."""
    config = _resolve_config(config_file, None, None)
    try:
        scenario = load_scenario(scenario_file)
        target, payload = encode_scenario(scenario, config)
    except ScenarioError as exc:
        console.print(f"[red]Failed to encode scenario: {exc}[/]")
        sys.exit(1)
    click.echo(f"target: {target}")
    click.echo(f"payload: 0x{payload.hex()}")


@main.command()
def actions() -> None:
    """List the supported action kinds and their parameter ABI."""
    table = Table(title="Actions")
    table.add_column("Action", style="bold", no_wrap=True)
    table.add_column("Parameters")
    table.add_column("Id")
    for name, action_cls in sorted(ALL_ACTIONS.items()):
        params = ", ".join(
            f"{abi_type} {param}" for param, abi_type in zip(action_cls.param_names(), action_cls.abi_types())
        )
        table.add_row(name, params, f"0x{action_id(name).hex()}")
    console.print(table)


if __name__ == "__main__":
    main()
