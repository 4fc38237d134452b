"""Rule plugin interface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Protocol, Union, runtime_checkable

from bundlelint.model import Bundle, Endpoint, NodeType
from bundlelint.severity import Severity

Node = Union[Bundle, Endpoint]


@dataclass(frozen=True)
class PluginInfo:
    """Static metadata every rule plugin declares."""

    plugin_id: str
    name: str
    message: str
    fatal: bool
    severity: Severity
    node_type: NodeType
    enabled: bool

    def __post_init__(self) -> None:
        # Normalise loose values coming from external plugin modules.
        object.__setattr__(self, "severity", Severity.parse(self.severity))
        object.__setattr__(self, "node_type", NodeType.parse(self.node_type))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleId": self.plugin_id,
            "name": self.name,
            "message": self.message,
            "fatal": self.fatal,
            "severity": int(self.severity),
            "nodeType": self.node_type.value,
            "enabled": self.enabled,
        }


@runtime_checkable
class Plugin(Protocol):
    """Protocol implemented by all rule plugins."""

    info: PluginInfo

    def visit(self, node: Node) -> bool:
        """Inspect ``node``, report findings on it and return whether any were found."""
