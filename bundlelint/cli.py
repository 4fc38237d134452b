"""Command-line entry point for the bundle linter."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List

from .config import LintConfig, load_config
from .errors import BundleLintError
from .formatters import FORMATTERS, get_formatter
from .linter import PluginRegistry, build_registry, lint_bundle
from .logging import setup_logging
from .result import LintResult
from .utils import load_bundle, write_text_file

logger = logging.getLogger(__name__)

DEFAULT_FORMATTER = "table"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bundlelint",
        description="Static analysis for API proxy bundles",
    )
    parser.add_argument(
        "--source",
        "-s",
        dest="source",
        default=None,
        help="Bundle directory (holding bundle.yaml) or manifest file to lint.",
    )
    parser.add_argument(
        "--formatter",
        "-f",
        choices=sorted(FORMATTERS),
        default=DEFAULT_FORMATTER,
        help="Report format (defaults to table).",
    )
    parser.add_argument(
        "--out",
        "--output",
        dest="output_path",
        type=str,
        default=None,
        help="Write the report to this file instead of stdout.",
    )
    parser.add_argument(
        "--excluded",
        "-e",
        dest="excluded",
        action="append",
        default=[],
        help="Comma separated rule ids to skip (repeatable).",
    )
    parser.add_argument(
        "--plugins-dir",
        dest="plugins_dir",
        default=None,
        help="Directory with additional plugin modules.",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Lint configuration file (defaults to .bundlelint.yaml when present).",
    )
    parser.add_argument(
        "--max-warnings",
        dest="max_warnings",
        type=int,
        default=None,
        help="Fail when more warnings than this are reported.",
    )
    parser.add_argument(
        "--list",
        dest="list_rules",
        action="store_true",
        help="List the available rules and exit.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity for diagnostics written to stderr.",
    )
    return parser


def _excluded_ids(values: List[str]) -> List[str]:
    return [item.strip() for value in values for item in value.split(",") if item.strip()]


def format_rule_list(registry: PluginRegistry) -> str:
    lines = [f"{'Rule':<12} | {'Node':<14} | {'Severity':<8} | {'On':<3} | Name"]
    lines.append("-" * len(lines[0]))
    for plugin in registry.all_plugins():
        info = plugin.info
        enabled = "yes" if registry.is_enabled(info.plugin_id) else "no"
        lines.append(
            f"{info.plugin_id:<12} | {info.node_type.value:<14} | {info.severity.label:<8} | {enabled:<3} | {info.name}"
        )
    return "\n".join(lines)


def write_output(result: LintResult, output_path: str | None, formatter_name: str) -> None:
    payload = get_formatter(formatter_name)(result.reports)
    if output_path:
        write_text_file(Path(output_path), payload)
        print(f"Report written to {output_path}")
    else:
        print(payload)


def run(args: argparse.Namespace) -> int:
    config: LintConfig = load_config(Path(args.config_path) if args.config_path else None)
    excluded = _excluded_ids(args.excluded)
    if excluded:
        config = config.with_excluded(excluded)
    registry = build_registry(config, Path(args.plugins_dir) if args.plugins_dir else None)

    if args.list_rules:
        print(format_rule_list(registry))
        return 0

    bundle = load_bundle(Path(args.source))
    result = lint_bundle(bundle, registry)
    write_output(result, args.output_path, args.formatter)
    for outcome in result.failed_plugins:
        logger.warning("Rule %s was skipped on %s: %s", outcome.plugin_id, outcome.node_name, outcome.error)

    max_warnings = args.max_warnings if args.max_warnings is not None else config.max_warnings
    return result.exit_code(max_warnings)


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.list_rules and not args.source:
        parser.error("--source is required unless --list is given")
    setup_logging(args.log_level)
    try:
        return run(args)
    except BundleLintError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
