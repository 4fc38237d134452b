import logging

import pytest

from bundlelint.config import LintConfig
from bundlelint.errors import PluginConfigError, PluginExecutionError, PluginLoadError
from bundlelint.linter import (
    PluginRegistry,
    build_registry,
    builtin_plugins,
    execute_plugin,
    lint_bundle,
    load_external_plugins,
)
from bundlelint.model import Bundle, Endpoint, NodeType
from bundlelint.plugins import PluginInfo
from bundlelint.severity import Severity


class StubPlugin:
    def __init__(self, plugin_id, node_type=NodeType.BUNDLE, fatal=False, enabled=True, fire=True, boom=False):
        self.info = PluginInfo(
            plugin_id=plugin_id,
            name=plugin_id,
            message=f"{plugin_id} fired",
            fatal=fatal,
            severity=Severity.WARNING,
            node_type=node_type,
            enabled=enabled,
        )
        self.fire = fire
        self.boom = boom
        self.visited = []

    def visit(self, node):
        self.visited.append(node.name)
        if self.boom:
            raise RuntimeError("unexpected")
        if self.fire:
            node.add_message(self.info)
        return self.fire


def make_bundle(name="TwentyFour"):
    return Bundle(
        name=name,
        endpoints=(
            Endpoint(kind=NodeType.PROXY_ENDPOINT, name="default"),
            Endpoint(kind=NodeType.PROXY_ENDPOINT, name="mobile"),
            Endpoint(kind=NodeType.TARGET_ENDPOINT, name="backend"),
        ),
    )


def test_registry_routes_plugins_by_node_type():
    bundle_rule = StubPlugin("A-1")
    proxy_rule = StubPlugin("A-2", node_type=NodeType.PROXY_ENDPOINT)
    registry = PluginRegistry([proxy_rule, bundle_rule])

    assert registry.plugins_for(NodeType.BUNDLE) == (bundle_rule,)
    assert registry.plugins_for(NodeType.PROXY_ENDPOINT) == (proxy_rule,)
    assert registry.plugins_for(NodeType.TARGET_ENDPOINT) == ()


def test_registry_rejects_duplicate_ids():
    with pytest.raises(PluginConfigError):
        PluginRegistry([StubPlugin("A-1"), StubPlugin("A-1")])


def test_registry_respects_enabled_flag_and_config():
    shipped_off = StubPlugin("A-1", enabled=False)
    shipped_on = StubPlugin("A-2")
    config = LintConfig(disabled=frozenset({"A-2"}), enabled=frozenset({"A-1"}))

    assert PluginRegistry([shipped_off, shipped_on]).enabled_plugins() == [shipped_on]
    assert PluginRegistry([shipped_off, shipped_on], config).enabled_plugins() == [shipped_off]


def test_lint_bundle_visits_each_node_once():
    bundle_rule = StubPlugin("A-1")
    proxy_rule = StubPlugin("A-2", node_type=NodeType.PROXY_ENDPOINT)
    target_rule = StubPlugin("A-3", node_type=NodeType.TARGET_ENDPOINT, fire=False)
    bundle = make_bundle()

    result = lint_bundle(bundle, PluginRegistry([bundle_rule, proxy_rule, target_rule]))

    assert bundle_rule.visited == ["TwentyFour"]
    assert proxy_rule.visited == ["default", "mobile"]
    assert target_rule.visited == ["backend"]
    assert result.warning_count == 3
    assert [outcome.had_error for outcome in result.outcomes] == [True, True, True, False]
    assert result.exit_code() == 0
    assert result.exit_code(max_warnings=2) == 1


def test_disabled_plugin_still_runs_when_executed_directly():
    plugin = StubPlugin("A-1", enabled=False)
    bundle = make_bundle()

    lint_bundle(bundle, PluginRegistry([plugin]))
    assert plugin.visited == []

    execute_plugin(plugin, bundle)
    assert plugin.visited == ["TwentyFour"]


def test_non_fatal_failure_is_recorded_and_run_continues(caplog):
    broken = StubPlugin("A-1", boom=True)
    healthy = StubPlugin("A-2", node_type=NodeType.PROXY_ENDPOINT)

    with caplog.at_level(logging.ERROR, logger="bundlelint.linter"):
        result = lint_bundle(make_bundle(), PluginRegistry([broken, healthy]))

    assert [outcome.plugin_id for outcome in result.failed_plugins] == ["A-1"]
    assert isinstance(result.failed_plugins[0].error, RuntimeError)
    assert healthy.visited == ["default", "mobile"]
    assert "A-1 failed" in caplog.text


def test_fatal_failure_aborts_run():
    broken = StubPlugin("A-1", fatal=True, boom=True)

    with pytest.raises(PluginExecutionError) as excinfo:
        lint_bundle(make_bundle(), PluginRegistry([broken]))

    assert excinfo.value.plugin_id == "A-1"


def test_fatal_violation_stops_dispatch():
    fatal = StubPlugin("A-1", fatal=True)
    later = StubPlugin("A-2", node_type=NodeType.PROXY_ENDPOINT)

    result = lint_bundle(make_bundle(), PluginRegistry([fatal, later]))

    assert result.aborted is True
    assert later.visited == []
    assert result.fatal_error_count == 1
    assert result.exit_code() == 2


def test_builtin_rules_on_sample_bundle():
    bundle = make_bundle()

    result = lint_bundle(bundle, PluginRegistry(builtin_plugins()))

    assert [m.rule_id for m in result.messages] == ["MyRule-001", "MyRule-002", "MyRule-002"]
    assert result.error_count == 3
    assert result.exit_code() == 1


def test_builtin_rules_can_be_disabled_through_config():
    config = LintConfig.from_dict({"disabled": ["MyRule-002"]})

    result = lint_bundle(make_bundle(), build_registry(config))

    assert [m.rule_id for m in result.messages] == ["MyRule-001"]


EXTERNAL_PLUGIN = '''
from bundlelint.model import NodeType
from bundlelint.plugins import PluginInfo
from bundlelint.severity import Severity

INFO = PluginInfo(
    plugin_id="Ext-001",
    name="Target endpoint naming",
    message="Target endpoint should not be called default",
    fatal=False,
    severity=Severity.WARNING,
    node_type=NodeType.TARGET_ENDPOINT,
    enabled=True,
)


class TargetNamePlugin:
    info = INFO

    def __init__(self, forbidden):
        self.forbidden = forbidden

    def visit(self, endpoint):
        if endpoint.name == self.forbidden:
            endpoint.add_message(self.info)
            return True
        return False


def get_plugin(options=None):
    options = options or {}
    return TargetNamePlugin(options.get("forbidden", "default"))
'''


def test_load_external_plugins(tmp_path):
    (tmp_path / "target_name.py").write_text(EXTERNAL_PLUGIN, encoding="utf-8")
    (tmp_path / "_helpers.py").write_text("raise RuntimeError('not a plugin')", encoding="utf-8")
    config = LintConfig.from_dict({"rules": {"Ext-001": {"forbidden": "backend"}}})

    registry = build_registry(config, plugins_dir=tmp_path)
    result = lint_bundle(make_bundle(), registry)

    assert len(registry) == 3
    assert [m.rule_id for m in result.messages if m.rule_id.startswith("Ext")] == ["Ext-001"]
    assert load_external_plugins(tmp_path)[0].forbidden == "default"


def test_external_module_without_factory(tmp_path):
    (tmp_path / "empty.py").write_text("VALUE = 1\n", encoding="utf-8")

    with pytest.raises(PluginLoadError, match="get_plugin"):
        load_external_plugins(tmp_path)


def test_external_module_import_error(tmp_path):
    (tmp_path / "broken.py").write_text("import not_a_real_module_xyz\n", encoding="utf-8")

    with pytest.raises(PluginLoadError, match="broken.py"):
        load_external_plugins(tmp_path)


def test_missing_plugin_directory(tmp_path):
    with pytest.raises(PluginLoadError):
        load_external_plugins(tmp_path / "nope")


def test_options_for_unknown_rule_are_reported(caplog):
    config = LintConfig.from_dict({"rules": {"MyRule-01": {"prefixes": ["X-"]}}})

    with caplog.at_level(logging.WARNING, logger="bundlelint.linter"):
        registry = build_registry(config)

    assert len(registry) == 2
    assert "unknown rule MyRule-01" in caplog.text
