"""Build the entity model from a YAML bundle manifest."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from bundlelint.errors import BundleLoadError
from bundlelint.model import Bundle, Endpoint, Flow, NodeType, Policy, Step

from .fileio import read_yaml_file

MANIFEST_FILENAME = "bundle.yaml"
BUNDLE_TYPES = ("apiproxy", "sharedflowbundle")


def resolve_manifest(path: Path) -> Path:
    """Accept either a bundle directory or the manifest file itself."""

    if path.is_dir():
        return path / MANIFEST_FILENAME
    return path


def load_bundle(path: Path) -> Bundle:
    """Load a bundle manifest into a :class:`Bundle`."""

    manifest = resolve_manifest(Path(path))
    try:
        data = read_yaml_file(manifest)
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise BundleLoadError(f"Cannot parse bundle manifest {manifest}: {exc}") from exc
    if data is None:
        raise BundleLoadError(f"Bundle manifest not found or empty: {manifest}")
    if not isinstance(data, dict):
        raise BundleLoadError(f"Bundle manifest at {manifest} is not a mapping")
    return bundle_from_dict(data, root=manifest)


def bundle_from_dict(data: Dict[str, Any], root: Optional[Path] = None) -> Bundle:
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise BundleLoadError("Bundle manifest requires a non-empty 'name'")
    bundle_type = data.get("type", "apiproxy")
    if bundle_type not in BUNDLE_TYPES:
        raise BundleLoadError(f"Bundle type must be one of {', '.join(BUNDLE_TYPES)}, got {bundle_type!r}")

    policies = [_build_policy(item, index) for index, item in enumerate(_as_list(data, "policies"))]
    seen = set()
    for policy in policies:
        if policy.name in seen:
            raise BundleLoadError(f"Duplicate policy name: {policy.name}")
        seen.add(policy.name)

    endpoints: List[Endpoint] = []
    for key, kind in (("proxy_endpoints", NodeType.PROXY_ENDPOINT), ("target_endpoints", NodeType.TARGET_ENDPOINT)):
        for index, item in enumerate(_as_list(data, key)):
            endpoints.append(_build_endpoint(item, kind, f"{key}[{index}]"))

    return Bundle(
        name=name,
        bundle_type=bundle_type,
        policies=tuple(policies),
        endpoints=tuple(endpoints),
        root=root,
    )


# ------------------------------------------------------------------
# Element builders
# ------------------------------------------------------------------
def _as_list(data: Dict[str, Any], key: str) -> List[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise BundleLoadError(f"'{key}' must be a list")
    return value


def _build_policy(item: Any, index: int) -> Policy:
    if not isinstance(item, dict) or not item.get("name") or not item.get("type"):
        raise BundleLoadError(f"policies[{index}] requires 'name' and 'type'")
    return Policy(
        name=str(item["name"]),
        type=str(item["type"]),
        display_name=item.get("display_name"),
    )


def _build_step(item: Any, where: str) -> Step:
    if isinstance(item, str):
        return Step(name=item)
    if isinstance(item, dict) and item.get("name"):
        return Step(name=str(item["name"]), condition=item.get("condition"))
    raise BundleLoadError(f"{where}: a step is a policy name or a mapping with 'name'")


def _build_flow(item: Any, default_name: str, where: str) -> Optional[Flow]:
    if item is None:
        return None
    if not isinstance(item, dict):
        raise BundleLoadError(f"{where} must be a mapping")
    steps = {}
    for phase in ("request", "response"):
        raw = item.get(phase) or []
        if not isinstance(raw, list):
            raise BundleLoadError(f"{where}.{phase} must be a list")
        steps[phase] = tuple(_build_step(step, f"{where}.{phase}[{i}]") for i, step in enumerate(raw))
    return Flow(
        name=str(item.get("name", default_name)),
        request=steps["request"],
        response=steps["response"],
        condition=item.get("condition"),
    )


def _build_endpoint(item: Any, kind: NodeType, where: str) -> Endpoint:
    if not isinstance(item, dict) or not item.get("name"):
        raise BundleLoadError(f"{where} requires a 'name'")
    flows = item.get("flows") or []
    if not isinstance(flows, list):
        raise BundleLoadError(f"{where}.flows must be a list")
    return Endpoint(
        kind=kind,
        name=str(item["name"]),
        preflow=_build_flow(item.get("preflow"), "PreFlow", f"{where}.preflow"),
        postflow=_build_flow(item.get("postflow"), "PostFlow", f"{where}.postflow"),
        flows=tuple(
            _build_flow(flow or {}, f"Flow{i}", f"{where}.flows[{i}]") for i, flow in enumerate(flows)
        ),
    )
