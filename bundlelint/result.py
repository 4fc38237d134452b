"""Core result data structures for the linter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .severity import Severity


@dataclass(frozen=True)
class Message:
    """Capture a single finding reported by a rule plugin."""

    rule_id: str
    name: str
    message: str
    severity: Severity
    fatal: bool
    node_type: str
    source: str
    line: Optional[int] = None
    column: Optional[int] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "ruleId": self.rule_id,
            "name": self.name,
            "message": self.message,
            "severity": int(self.severity),
            "fatal": self.fatal,
            "nodeType": self.node_type,
            "line": self.line,
            "column": self.column,
        }


@dataclass
class EntityReport:
    """Append-only list of messages reported against one entity."""

    file_path: str
    node_type: str
    messages: List[Message] = field(default_factory=list)

    def append(self, message: Message) -> None:
        self.messages.append(message)

    @property
    def error_count(self) -> int:
        return sum(1 for message in self.messages if message.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for message in self.messages if message.severity == Severity.WARNING)

    @property
    def fatal_error_count(self) -> int:
        return sum(1 for message in self.messages if message.fatal)

    def to_dict(self) -> Dict[str, object]:
        return {
            "filePath": self.file_path,
            "nodeType": self.node_type,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "fatalErrorCount": self.fatal_error_count,
            "messages": [message.to_dict() for message in self.messages],
        }


@dataclass(frozen=True)
class PluginOutcome:
    """Result of offering one node to one plugin."""

    plugin_id: str
    node_type: str
    node_name: str
    had_error: bool
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class LintResult:
    """Aggregate the outcome of a lint run over one bundle."""

    reports: List[EntityReport] = field(default_factory=list)
    outcomes: List[PluginOutcome] = field(default_factory=list)
    aborted: bool = False

    @property
    def messages(self) -> List[Message]:
        return [message for report in self.reports for message in report.messages]

    @property
    def error_count(self) -> int:
        return sum(report.error_count for report in self.reports)

    @property
    def warning_count(self) -> int:
        return sum(report.warning_count for report in self.reports)

    @property
    def fatal_error_count(self) -> int:
        return sum(report.fatal_error_count for report in self.reports)

    @property
    def failed_plugins(self) -> List[PluginOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    def messages_for(self, rule_id: str) -> List[Message]:
        """Return every message reported by ``rule_id`` in report order."""

        return [message for message in self.messages if message.rule_id == rule_id]

    def exit_code(self, max_warnings: Optional[int] = None) -> int:
        if self.aborted or self.fatal_error_count > 0:
            return 2
        if self.error_count > 0:
            return 1
        if max_warnings is not None and max_warnings >= 0 and self.warning_count > max_warnings:
            return 1
        return 0
