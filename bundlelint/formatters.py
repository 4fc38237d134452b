"""Render entity reports for the console or for machines."""

from __future__ import annotations

import json
from typing import Callable, Dict, List, Sequence

from .errors import FormatterNotFoundError
from .result import EntityReport

Formatter = Callable[[Sequence[EntityReport]], str]


def format_json(reports: Sequence[EntityReport]) -> str:
    """Serialise every entity report, including the ones without messages."""

    return json.dumps([report.to_dict() for report in reports], indent=2)


def format_table(reports: Sequence[EntityReport]) -> str:
    """Create a human-readable table of messages grouped by entity."""

    lines: List[str] = []
    errors = warnings = 0
    for report in reports:
        if not report.messages:
            continue
        errors += report.error_count
        warnings += report.warning_count
        lines.append(f"{report.file_path} ({report.node_type})")
        header = f"  {'Location':<9} | {'Severity':<8} | {'Rule':<12} | Message"
        lines.append(header)
        lines.append("  " + "-" * (len(header) - 2))
        for message in report.messages:
            location = f"{message.line or 0}:{message.column or 0}"
            label = message.severity.label + ("!" if message.fatal else "")
            lines.append(f"  {location:<9} | {label:<8} | {message.rule_id:<12} | {message.message}")
        lines.append("")

    total = sum(len(report.messages) for report in reports)
    if total == 0:
        return "No problems found"
    plural = "problem" if total == 1 else "problems"
    lines.append(f"{total} {plural} ({errors} errors, {warnings} warnings)")
    return "\n".join(lines)


FORMATTERS: Dict[str, Formatter] = {
    "json": format_json,
    "table": format_table,
}


def get_formatter(name: str) -> Formatter:
    """Look up a formatter by name; ``json.js`` and ``table.py`` style names also match."""

    key = name.strip().lower()
    for suffix in (".js", ".py"):
        if key.endswith(suffix):
            key = key[: -len(suffix)]
    try:
        return FORMATTERS[key]
    except KeyError:
        raise FormatterNotFoundError(
            f"Unknown formatter {name!r}; available: {', '.join(sorted(FORMATTERS))}"
        ) from None
