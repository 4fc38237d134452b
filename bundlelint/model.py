"""Entity model handed to rule plugins.

A bundle owns its policies and endpoints. Everything except the per-entity
report is immutable once built: collections are tuples and leaf objects are
frozen dataclasses, so plugins can only read structure and append messages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple, Union

from .result import EntityReport, Message

if TYPE_CHECKING:  # pragma: no cover
    from .plugins import PluginInfo


class NodeType(str, Enum):
    """Closed set of entity kinds a plugin can visit."""

    BUNDLE = "Bundle"
    PROXY_ENDPOINT = "ProxyEndpoint"
    TARGET_ENDPOINT = "TargetEndpoint"

    @classmethod
    def parse(cls, value: Union[str, "NodeType"]) -> "NodeType":
        if isinstance(value, NodeType):
            return value
        for member in cls:
            if value in (member.value, member.name):
                return member
        raise ValueError(f"Unknown node type: {value!r}")


ENDPOINT_KINDS = (NodeType.PROXY_ENDPOINT, NodeType.TARGET_ENDPOINT)


@dataclass(frozen=True)
class Policy:
    name: str
    type: str
    display_name: Optional[str] = None


@dataclass(frozen=True)
class Step:
    """Reference by name to a policy attached to a flow."""

    name: str
    condition: Optional[str] = None


@dataclass(frozen=True)
class Flow:
    name: str
    request: Tuple[Step, ...] = ()
    response: Tuple[Step, ...] = ()
    condition: Optional[str] = None

    def iter_steps(self) -> Iterator[Step]:
        yield from self.request
        yield from self.response


class _ReportSink:
    """Mixin giving an entity its own append-only report.

    Once ``__post_init__`` seals the entity only the attributes named in
    ``_writable`` can be reassigned.
    """

    report: EntityReport
    _writable: Tuple[str, ...] = ("report",)

    def __setattr__(self, key: str, value: object) -> None:
        if getattr(self, "_sealed", False) and key not in self._writable:
            raise AttributeError(f"{type(self).__name__}.{key} is read-only")
        object.__setattr__(self, key, value)

    def add_message(
        self,
        info: "PluginInfo",
        message: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> Message:
        entry = Message(
            rule_id=info.plugin_id,
            name=info.name,
            message=message if message is not None else info.message,
            severity=info.severity,
            fatal=info.fatal,
            node_type=info.node_type.value,
            source=self.report.file_path,
            line=line,
            column=column,
        )
        self.report.append(entry)
        return entry


@dataclass(eq=False)
class Endpoint(_ReportSink):
    """A proxy or target endpoint owning its flow definitions."""

    kind: NodeType
    name: str
    preflow: Optional[Flow] = None
    postflow: Optional[Flow] = None
    flows: Tuple[Flow, ...] = ()
    bundle: Optional["Bundle"] = field(default=None, repr=False)
    report: EntityReport = field(init=False, repr=False)
    _writable = ("report", "bundle")

    def __post_init__(self) -> None:
        if self.kind not in ENDPOINT_KINDS:
            raise ValueError(f"Endpoint kind must be one of {[kind.value for kind in ENDPOINT_KINDS]}")
        self.flows = tuple(self.flows)
        self.report = EntityReport(file_path=self.name, node_type=self.kind.value)
        self._sealed = True

    def get_report(self) -> EntityReport:
        return self.report

    def all_flows(self) -> Iterator[Flow]:
        if self.preflow is not None:
            yield self.preflow
        yield from self.flows
        if self.postflow is not None:
            yield self.postflow

    def request_policies(self, flow: Optional[Flow]) -> List[Policy]:
        """Resolve the request steps of ``flow`` to policies of the parent bundle.

        Steps naming a policy the bundle does not define are skipped.
        """

        if flow is None or self.bundle is None:
            return []
        policies = []
        for step in flow.request:
            policy = self.bundle.policy(step.name)
            if policy is not None:
                policies.append(policy)
        return policies


@dataclass(eq=False)
class Bundle(_ReportSink):
    """Root entity of a lint run: an API proxy or a shared flow."""

    name: str
    bundle_type: str = "apiproxy"
    policies: Tuple[Policy, ...] = ()
    endpoints: Tuple[Endpoint, ...] = ()
    root: Optional[Path] = None
    report: EntityReport = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.policies = tuple(self.policies)
        self.endpoints = tuple(self.endpoints)
        source = str(self.root) if self.root is not None else self.name
        self.report = EntityReport(file_path=source, node_type=NodeType.BUNDLE.value)
        for endpoint in self.endpoints:
            endpoint.bundle = self
            endpoint.report.file_path = f"{source}:{endpoint.kind.value}/{endpoint.name}"
        self._sealed = True

    @property
    def proxy_endpoints(self) -> Tuple[Endpoint, ...]:
        return tuple(e for e in self.endpoints if e.kind is NodeType.PROXY_ENDPOINT)

    @property
    def target_endpoints(self) -> Tuple[Endpoint, ...]:
        return tuple(e for e in self.endpoints if e.kind is NodeType.TARGET_ENDPOINT)

    def policy(self, name: str) -> Optional[Policy]:
        for policy in self.policies:
            if policy.name == name:
                return policy
        return None

    def policies_of_type(self, policy_type: str) -> List[Policy]:
        return [policy for policy in self.policies if policy.type == policy_type]

    def nodes(self, kind: NodeType) -> Tuple[Union["Bundle", Endpoint], ...]:
        """Return the entities of ``kind`` in dispatch order."""

        if kind is NodeType.BUNDLE:
            return (self,)
        if kind is NodeType.PROXY_ENDPOINT:
            return self.proxy_endpoints
        return self.target_endpoints

    def get_report(self) -> List[EntityReport]:
        """Return the bundle's own report followed by each endpoint's report."""

        return [self.report] + [endpoint.report for endpoint in self.endpoints]
