"""Require API proxy names to start with an approved prefix."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from bundlelint.config import apply_option_schema
from bundlelint.model import Bundle, NodeType
from bundlelint.severity import Severity

from . import Plugin, PluginInfo

DEFAULT_PREFIXES = ("B2B-", "B2C-")

INFO = PluginInfo(
    plugin_id="MyRule-001",
    name="Check proxy name prefix",
    message="API Proxy name should start with B2B-* or B2C-*",
    fatal=False,
    severity=Severity.ERROR,
    node_type=NodeType.BUNDLE,
    enabled=True,
)

OPTION_SCHEMA = {
    "prefixes": {
        "type": "array",
        "items": "string",
        "min_items": 1,
        "item_min_length": 1,
        "default": DEFAULT_PREFIXES,
    },
}


class ProxyNamePrefixPlugin:
    """Flag bundles whose name starts with none of the configured prefixes."""

    info = INFO

    def __init__(self, prefixes: Sequence[str] = DEFAULT_PREFIXES) -> None:
        self._prefixes = tuple(prefixes)

    @property
    def prefixes(self) -> tuple:
        return self._prefixes

    def visit(self, bundle: Bundle) -> bool:
        name = bundle.name
        if name.startswith(self._prefixes):
            return False
        expected = " or ".join(f"{prefix}*" for prefix in self._prefixes)
        bundle.add_message(self.info, f"API Proxy name ({name}) should start with {expected}")
        return True


def get_plugin(options: Optional[Mapping[str, Any]] = None) -> Plugin:
    values = apply_option_schema(OPTION_SCHEMA, options)
    return ProxyNamePrefixPlugin(prefixes=values["prefixes"])
