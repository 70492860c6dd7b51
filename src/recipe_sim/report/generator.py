"""Report generator - JSON and Markdown output."""
from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from ..constants import MAX_UINT256
from ..scenario import BalanceRow, ScenarioResult

__all__ = ["ReportGenerator", "format_amount"]


def format_amount(value: int) -> str:
    if value == MAX_UINT256:
        return "max"
    return str(value)


class ReportGenerator:
    def __init__(self, scenario_name: str = "unknown") -> None:
        self.scenario_name = scenario_name

    @staticmethod
    def _row_to_dict(row: BalanceRow) -> dict[str, Any]:
        return {
            "token": row.token,
            "holder": row.holder,
            "token_address": row.token_address,
            "holder_address": row.holder_address,
            # Strings: 256-bit values do not survive JSON number parsers.
            "before": str(row.before),
            "after": str(row.after),
            "delta": str(row.delta),
        }

    def to_dict(self, result: ScenarioResult) -> dict[str, Any]:
        """Serialize a scenario result into a structured report dictionary."""
        return {
            "scenario": self.scenario_name,
            "timestamp": datetime.now(UTC).isoformat(),
            "target": result.target,
            "sender": result.sender,
            "proxy": result.proxy,
            "block_number": result.block_number,
            "outcome": {
                "reverted": result.reverted,
                "error": result.error,
                "reason": result.reason,
                "outputs": [str(value) for value in result.outputs],
            },
            "balances": [self._row_to_dict(row) for row in result.balances],
            "expectations": {
                "passed": result.passed,
                "violations": list(result.violations),
            },
        }

    def to_json(self, result: ScenarioResult) -> str:
        """Return the report as a pretty-printed JSON string."""
        return json.dumps(self.to_dict(result), indent=2)

    @staticmethod
    def _markdown_table(headers: list[str], rows: list[list[str]]) -> list[str]:
        sep = "|".join("-" * max(len(h), 3) for h in headers)
        lines = [
            "| " + " | ".join(headers) + " |",
            "|" + sep + "|",
        ]
        for row in rows:
            lines.append("| " + " | ".join(row) + " |")
        return lines

    def to_markdown(self, result: ScenarioResult) -> str:
        """Render the report as a Markdown document."""
        d = self.to_dict(result)
        outcome = d["outcome"]
        lines = [
            f"# Recipe Report: {self.scenario_name}",
            f"\nGenerated: {d['timestamp']}\n",
            "## Execution\n",
            f"- **Target:** {d['target']}",
            f"- **Sender:** {d['sender']}",
            f"- **Proxy:** {d['proxy']}",
            f"- **Block:** {d['block_number']}",
        ]
        if outcome["reverted"]:
            lines.append(f"- **Outcome:** reverted ({outcome['error']})")
            lines.append(f"- **Reason:** {outcome['reason']}")
        else:
            lines.append("- **Outcome:** success")
            if outcome["outputs"]:
                lines.append(f"- **Outputs:** {', '.join(outcome['outputs'])}")
        lines.append("")

        if result.balances:
            lines.append("## Balances\n")
            lines.extend(self._markdown_table(
                ["Token", "Holder", "Before", "After", "Delta"],
                [
                    [row.token, row.holder, format_amount(row.before), format_amount(row.after), str(row.delta)]
                    for row in result.balances
                ],
            ))
            lines.append("")

        lines.append("## Expectations\n")
        lines.append(f"- **Passed:** {'Yes' if result.passed else 'No'}")
        if result.violations:
            lines.append("")
            for violation in result.violations:
                lines.append(f"- {violation}")
        return "\n".join(lines)
