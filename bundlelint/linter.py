"""Plugin registry and dispatch over a bundle's entities."""

from __future__ import annotations

import importlib
import importlib.util
import logging
from pathlib import Path
from types import ModuleType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .config import LintConfig
from .errors import PluginConfigError, PluginExecutionError, PluginLoadError
from .model import Bundle, NodeType
from .plugins import Node, Plugin, PluginInfo
from .result import LintResult, PluginOutcome

logger = logging.getLogger(__name__)

BUILTIN_PLUGIN_MODULES = (
    "bundlelint.plugins.check_proxy_name_prefix",
    "bundlelint.plugins.check_preflow_spike_arrest",
)

# Bundle first, then its endpoints in declaration order.
DISPATCH_ORDER = (NodeType.BUNDLE, NodeType.PROXY_ENDPOINT, NodeType.TARGET_ENDPOINT)


class PluginRegistry:
    """Typed lookup table from node kind to the enabled plugins for it."""

    def __init__(self, plugins: Iterable[Plugin], config: Optional[LintConfig] = None) -> None:
        config = config or LintConfig()
        self._all: Dict[str, Plugin] = {}
        for plugin in plugins:
            info = _plugin_info(plugin)
            if info.plugin_id in self._all:
                raise PluginConfigError(f"Duplicate plugin id: {info.plugin_id}")
            self._all[info.plugin_id] = plugin

        table: Dict[NodeType, List[Plugin]] = {kind: [] for kind in NodeType}
        for plugin_id in sorted(self._all):
            plugin = self._all[plugin_id]
            if config.is_enabled(plugin_id, plugin.info.enabled):
                table[plugin.info.node_type].append(plugin)
            else:
                logger.debug("Plugin %s is disabled", plugin_id)
        self._table: Dict[NodeType, Tuple[Plugin, ...]] = {kind: tuple(items) for kind, items in table.items()}

    def plugins_for(self, kind: NodeType) -> Tuple[Plugin, ...]:
        return self._table[kind]

    def enabled_plugins(self) -> List[Plugin]:
        return [plugin for kind in DISPATCH_ORDER for plugin in self._table[kind]]

    def all_plugins(self) -> List[Plugin]:
        return [self._all[plugin_id] for plugin_id in sorted(self._all)]

    def is_enabled(self, plugin_id: str) -> bool:
        plugin = self._all.get(plugin_id)
        return plugin is not None and plugin in self._table[plugin.info.node_type]

    def get(self, plugin_id: str) -> Plugin:
        try:
            return self._all[plugin_id]
        except KeyError:
            raise PluginConfigError(f"Unknown plugin id: {plugin_id}") from None

    def __len__(self) -> int:
        return len(self._all)


# ------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------
def _plugin_info(plugin: object) -> PluginInfo:
    info = getattr(plugin, "info", None)
    if not isinstance(info, PluginInfo) or not callable(getattr(plugin, "visit", None)):
        raise PluginLoadError(f"{plugin!r} does not implement the plugin interface")
    return info


def _plugin_from_module(module: ModuleType, options: Mapping) -> Plugin:
    factory = getattr(module, "get_plugin", None)
    if factory is None:
        raise PluginLoadError(f"Plugin module {module.__name__} does not define get_plugin()")
    plugin = factory(options)
    _plugin_info(plugin)
    return plugin


def builtin_plugins(config: Optional[LintConfig] = None) -> List[Plugin]:
    """Instantiate the shipped rules with their configured options."""

    config = config or LintConfig()
    plugins = []
    for module_name in BUILTIN_PLUGIN_MODULES:
        module = importlib.import_module(module_name)
        info = module.INFO
        plugins.append(_plugin_from_module(module, config.options_for(info.plugin_id)))
    return plugins


def load_plugin_module(path: Path) -> ModuleType:
    """Import a plugin module from a file path."""

    path = Path(path)
    if not path.is_file():
        raise PluginLoadError(f"Plugin module not found: {path}")
    spec = importlib.util.spec_from_file_location(f"bundlelint_external.{path.stem}", path)
    if spec is None or spec.loader is None:
        raise PluginLoadError(f"Cannot load plugin module from {path}")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:  # pylint: disable=broad-except
        raise PluginLoadError(f"Failed to import plugin module {path}: {exc}") from exc
    return module


def load_external_plugins(directory: Path, config: Optional[LintConfig] = None) -> List[Plugin]:
    """Load every ``*.py`` plugin module found directly under ``directory``."""

    config = config or LintConfig()
    directory = Path(directory)
    if not directory.is_dir():
        raise PluginLoadError(f"Plugin directory not found: {directory}")
    plugins = []
    for path in sorted(directory.glob("*.py")):
        if path.name.startswith("_"):
            continue
        module = load_plugin_module(path)
        info = getattr(module, "INFO", None)
        options = config.options_for(info.plugin_id) if isinstance(info, PluginInfo) else {}
        plugin = _plugin_from_module(module, options)
        logger.debug("Loaded plugin %s from %s", plugin.info.plugin_id, path)
        plugins.append(plugin)
    return plugins


def build_registry(config: Optional[LintConfig] = None, plugins_dir: Optional[Path] = None) -> PluginRegistry:
    config = config or LintConfig()
    plugins = builtin_plugins(config)
    if plugins_dir is not None:
        plugins.extend(load_external_plugins(plugins_dir, config))
    registry = PluginRegistry(plugins, config)
    known = {plugin.info.plugin_id for plugin in registry.all_plugins()}
    for rule_id in sorted(set(config.rules) - known):
        logger.warning("Options given for unknown rule %s are ignored", rule_id)
    return registry


# ------------------------------------------------------------------
# Dispatch
# ------------------------------------------------------------------
def _visit(plugin: Plugin, node: Node) -> PluginOutcome:
    info = plugin.info
    node_name = node.name
    logger.debug("Running %s on %s %s", info.plugin_id, info.node_type.value, node_name)
    try:
        had_error = bool(plugin.visit(node))
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Plugin %s failed on %s %s", info.plugin_id, info.node_type.value, node_name)
        if info.fatal:
            raise PluginExecutionError(info.plugin_id, str(exc)) from exc
        return PluginOutcome(info.plugin_id, info.node_type.value, node_name, had_error=False, error=exc)
    return PluginOutcome(info.plugin_id, info.node_type.value, node_name, had_error=had_error)


def execute_plugin(plugin: Plugin, bundle: Bundle) -> List[PluginOutcome]:
    """Run one plugin against every node of its kind, enabled or not."""

    return [_visit(plugin, node) for node in bundle.nodes(plugin.info.node_type)]


def lint_bundle(bundle: Bundle, registry: PluginRegistry) -> LintResult:
    """Offer every node of ``bundle`` to the enabled plugins for its kind.

    A fatal plugin that reports a violation stops the run.
    """

    result = LintResult()
    for kind in DISPATCH_ORDER:
        for node in bundle.nodes(kind):
            for plugin in registry.plugins_for(kind):
                outcome = _visit(plugin, node)
                result.outcomes.append(outcome)
                if outcome.had_error and plugin.info.fatal:
                    logger.warning("Fatal rule %s fired on %s; stopping", plugin.info.plugin_id, node.name)
                    result.aborted = True
                    result.reports = bundle.get_report()
                    return result
    result.reports = bundle.get_report()
    return result
