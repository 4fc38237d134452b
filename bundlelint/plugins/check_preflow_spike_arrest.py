"""Require a rate-limiting policy in every proxy endpoint's PreFlow."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from bundlelint.config import apply_option_schema
from bundlelint.model import Endpoint, NodeType
from bundlelint.severity import Severity

from . import Plugin, PluginInfo

DEFAULT_POLICY_TYPE = "SpikeArrest"

INFO = PluginInfo(
    plugin_id="MyRule-002",
    name="Check Spike Arrest in PreFlow",
    message="Spike Arrest policy should be included in the PreFlow section.",
    fatal=False,
    severity=Severity.ERROR,
    node_type=NodeType.PROXY_ENDPOINT,
    enabled=True,
)

OPTION_SCHEMA = {
    "policy_type": {"type": "string", "min_length": 1, "default": DEFAULT_POLICY_TYPE},
}


class PreFlowSpikeArrestPlugin:
    """Flag proxy endpoints whose PreFlow request lacks a policy of the required type.

    An endpoint without any PreFlow counts as missing the policy.
    """

    info = INFO

    def __init__(self, policy_type: str = DEFAULT_POLICY_TYPE) -> None:
        self._policy_type = policy_type
        if policy_type == DEFAULT_POLICY_TYPE:
            self._message = INFO.message
        else:
            self._message = f"{policy_type} policy should be included in the PreFlow section."

    @property
    def policy_type(self) -> str:
        return self._policy_type

    def visit(self, endpoint: Endpoint) -> bool:
        policies = endpoint.request_policies(endpoint.preflow)
        if any(policy.type == self._policy_type for policy in policies):
            return False
        endpoint.add_message(self.info, self._message)
        return True


def get_plugin(options: Optional[Mapping[str, Any]] = None) -> Plugin:
    values = apply_option_schema(OPTION_SCHEMA, options)
    return PreFlowSpikeArrestPlugin(policy_type=values["policy_type"])
