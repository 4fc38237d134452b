import json
from pathlib import Path

from bundlelint import cli

BUNDLES = Path(__file__).resolve().parents[1] / "bundles"


def test_cli_reports_violations_as_json(tmp_path, capsys):
    output_path = tmp_path / "report.json"

    exit_code = cli.main(
        [
            "--source",
            str(BUNDLES / "TwentyFour"),
            "--formatter",
            "json",
            "--out",
            str(output_path),
        ]
    )

    captured = capsys.readouterr()
    assert "Report written to" in captured.out
    assert exit_code == 1
    data = json.loads(output_path.read_text(encoding="utf-8"))
    messages = {m["ruleId"]: m for entry in data for m in entry["messages"]}
    assert messages["MyRule-001"]["message"] == "API Proxy name (TwentyFour) should start with B2B-* or B2C-*"
    assert messages["MyRule-002"]["severity"] == 2


def test_cli_passes_on_clean_bundle(capsys):
    exit_code = cli.main(["-s", str(BUNDLES / "B2B-Orders")])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "No problems found" in captured.out


def test_cli_excluded_rules(capsys):
    exit_code = cli.main(["-s", str(BUNDLES / "TwentyFour"), "-e", "MyRule-001,MyRule-002"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "No problems found" in captured.out


def test_cli_config_file(tmp_path, capsys):
    config_path = tmp_path / "lint.yaml"
    config_path.write_text("rules:\n  MyRule-001:\n    prefixes: [Twenty]\n", encoding="utf-8")

    exit_code = cli.main(["-s", str(BUNDLES / "TwentyFour"), "--config", str(config_path)])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "MyRule-001" not in captured.out
    assert "MyRule-002" in captured.out


def test_cli_list_rules(capsys):
    exit_code = cli.main(["--list", "-e", "MyRule-002"])

    lines = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert any(line.startswith("MyRule-001") and "| yes" in line for line in lines)
    assert any(line.startswith("MyRule-002") and "| no" in line for line in lines)


def test_cli_missing_bundle_returns_error(tmp_path):
    assert cli.main(["-s", str(tmp_path)]) == 2


WARNING_PLUGIN = '''
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

    def visit(self, endpoint):
        if endpoint.name == "default":
            endpoint.add_message(self.info)
            return True
        return False


def get_plugin(options=None):
    return TargetNamePlugin()
'''


def write_plugin_dir(tmp_path):
    plugins_dir = tmp_path / "plugins"
    plugins_dir.mkdir()
    (plugins_dir / "target_name.py").write_text(WARNING_PLUGIN, encoding="utf-8")
    return plugins_dir


def test_cli_plugins_dir(tmp_path, capsys):
    plugins_dir = write_plugin_dir(tmp_path)

    exit_code = cli.main(["-s", str(BUNDLES / "B2B-Orders"), "--plugins-dir", str(plugins_dir)])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "Ext-001" in captured.out
    assert "1 problem (0 errors, 1 warnings)" in captured.out


def test_cli_max_warnings(tmp_path, capsys):
    plugins_dir = write_plugin_dir(tmp_path)
    args = ["-s", str(BUNDLES / "B2B-Orders"), "--plugins-dir", str(plugins_dir)]

    assert cli.main(args + ["--max-warnings", "1"]) == 0
    assert cli.main(args + ["--max-warnings", "0"]) == 1
    capsys.readouterr()


def test_cli_unreadable_inputs_return_error(tmp_path):
    (tmp_path / "bundle.yaml").write_bytes(b"name: \xff\xfeBad\n")
    config_path = tmp_path / "lint.yaml"
    config_path.write_bytes(b"disabled: [\xff]\n")

    assert cli.main(["-s", str(tmp_path)]) == 2
    assert cli.main(["-s", str(BUNDLES / "B2B-Orders"), "--config", str(config_path)]) == 2
