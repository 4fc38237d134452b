"""Lint configuration loading and rule option validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional

import yaml

from .errors import PluginConfigError
from .utils.fileio import read_yaml_file

DEFAULT_CONFIG_FILENAME = ".bundlelint.yaml"

_TYPE_MAP = {
    "string": str,
    "integer": int,
    "boolean": bool,
    "array": (list, tuple),
    "object": dict,
}

_TOP_LEVEL_KEYS = {"disabled", "enabled", "rules", "max_warnings"}


def apply_option_schema(schema: Mapping[str, Any], options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Fill defaults and type-check ``options`` against a rule's option schema.

    The schema maps option names to ``{"type": ..., "default": ...}`` and may
    add ``"items"`` (element type of an array), ``"min_items"`` or
    ``"item_min_length"``. Every problem is collected before raising a single
    :class:`PluginConfigError`.
    """

    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise PluginConfigError("Rule options must be a mapping")

    errors = []
    result: Dict[str, Any] = {}
    for key in options:
        if key not in schema:
            errors.append(f"Unknown option '{key}'")

    for key, spec in schema.items():
        if key not in options:
            if "default" in spec:
                result[key] = spec["default"]
            else:
                errors.append(f"Missing required option: {key}")
            continue
        value = options[key]
        expected = spec.get("type")
        expected_type = _TYPE_MAP.get(expected) if expected else None
        if expected and expected_type is None:
            errors.append(f"Unsupported type in schema: {expected}")
        elif expected == "integer" and isinstance(value, bool):
            errors.append(f"Option '{key}' must be integer")
        elif expected_type is not None and not isinstance(value, expected_type):
            errors.append(f"Option '{key}' must be {expected}")
        elif expected == "array":
            item_type = _TYPE_MAP.get(spec.get("items", ""))
            if item_type is not None and not all(isinstance(item, item_type) for item in value):
                errors.append(f"Option '{key}' must only contain {spec['items']} values")
            elif len(value) < spec.get("min_items", 0):
                errors.append(f"Option '{key}' needs at least {spec['min_items']} item(s)")
            elif spec.get("item_min_length") and any(len(item) < spec["item_min_length"] for item in value):
                errors.append(f"Option '{key}' items must have length >= {spec['item_min_length']}")
            else:
                value = tuple(value)
        elif expected == "string" and spec.get("min_length") and len(value) < spec["min_length"]:
            errors.append(f"Option '{key}' length must be >= {spec['min_length']}")
        result[key] = value

    if errors:
        raise PluginConfigError("; ".join(errors))
    return result


@dataclass(frozen=True)
class LintConfig:
    """Immutable settings applied when building the plugin registry."""

    disabled: FrozenSet[str] = frozenset()
    enabled: FrozenSet[str] = frozenset()
    rules: Mapping[str, Mapping[str, Any]] = field(default_factory=lambda: MappingProxyType({}))
    max_warnings: Optional[int] = None

    def options_for(self, plugin_id: str) -> Mapping[str, Any]:
        return self.rules.get(plugin_id, {})

    def is_enabled(self, plugin_id: str, default: bool) -> bool:
        if plugin_id in self.disabled:
            return False
        if plugin_id in self.enabled:
            return True
        return default

    def with_excluded(self, plugin_ids) -> "LintConfig":
        """Return a copy that additionally disables ``plugin_ids``."""

        return LintConfig(
            disabled=self.disabled | frozenset(plugin_ids),
            enabled=self.enabled - frozenset(plugin_ids),
            rules=self.rules,
            max_warnings=self.max_warnings,
        )

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "LintConfig":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise PluginConfigError("Lint configuration must be a mapping")

        errors = []
        for key in data:
            if key not in _TOP_LEVEL_KEYS:
                errors.append(f"Unknown configuration key '{key}'")

        disabled = _id_set(data.get("disabled"), "disabled", errors)
        enabled = _id_set(data.get("enabled"), "enabled", errors)
        overlap = disabled & enabled
        if overlap:
            errors.append(f"Rules both enabled and disabled: {', '.join(sorted(overlap))}")

        rules_data = data.get("rules") or {}
        rules: Dict[str, Mapping[str, Any]] = {}
        if not isinstance(rules_data, Mapping):
            errors.append("'rules' must map rule ids to option mappings")
        else:
            for rule_id, options in rules_data.items():
                if options is None:
                    options = {}
                if not isinstance(options, Mapping):
                    errors.append(f"Options for rule '{rule_id}' must be a mapping")
                    continue
                rules[str(rule_id)] = MappingProxyType(dict(options))

        max_warnings = data.get("max_warnings")
        if max_warnings is not None and (isinstance(max_warnings, bool) or not isinstance(max_warnings, int)):
            errors.append("'max_warnings' must be an integer")

        if errors:
            raise PluginConfigError("; ".join(errors))
        return cls(
            disabled=disabled,
            enabled=enabled,
            rules=MappingProxyType(rules),
            max_warnings=max_warnings,
        )


def _id_set(value: Any, key: str, errors: list) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value})
    if not isinstance(value, (list, tuple)):
        errors.append(f"'{key}' must be a list of rule ids")
        return frozenset()
    return frozenset(str(item) for item in value)


def load_config(path: Optional[Path] = None) -> LintConfig:
    """Load the lint configuration.

    Without ``path`` the default file in the working directory is used when it
    exists; an explicit path must exist.
    """

    if path is None:
        path = Path(DEFAULT_CONFIG_FILENAME)
        if not path.exists():
            return LintConfig()
    elif not Path(path).exists():
        raise PluginConfigError(f"Configuration file not found: {path}")
    try:
        data = read_yaml_file(Path(path))
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise PluginConfigError(f"Cannot parse configuration file {path}: {exc}") from exc
    return LintConfig.from_dict(data)
