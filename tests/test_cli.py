import sys
import textwrap

import pytest
import yaml
from junitparser import JUnitXml
from typer.testing import CliRunner

from tallytest.cli import app

runner = CliRunner()


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Write a config plus a test module; returns a builder taking module source."""
    monkeypatch.setattr(sys, "path", list(sys.path))
    written: list[str] = []

    def _build(module_name: str, source: str, **config) -> str:
        (tmp_path / f"{module_name}.py").write_text(textwrap.dedent(source))
        written.append(module_name)
        data = {"name": "cli-suite", "paths": ["."], "tests": [module_name], **config}
        config_path = tmp_path / "tallytest.yaml"
        config_path.write_text(yaml.dump(data))
        return str(config_path)

    yield _build

    for name in written:
        sys.modules.pop(name, None)


PASSING = """\
from tallytest import Registry

REGISTRY = Registry()

@REGISTRY.test
def add_returns_sum(t):
    t.assert_eq(2 + 2, 4)

@REGISTRY.test
def string_equality_check(t):
    t.assert_eq_str("a", "a")
"""

FAILING = """\
from tallytest import Registry

REGISTRY = Registry()

@REGISTRY.test
def add_returns_sum(t):
    t.assert_eq(2 + 2, 4)
    t.assert_eq(2 + 2, 5)

@REGISTRY.test
def string_equality_check(t):
    t.assert_eq_str("a", "a")
"""


def test_run_all_passing_exits_zero(project):
    config = project("cli_passing_tests", PASSING)
    result = runner.invoke(app, ["run", config, "--no-color"])
    assert result.exit_code == 0
    assert "INFO: Running a total of 2 tests." in result.output
    assert "✅ Test add_returns_sum passed." in result.output
    assert "0 failed | 2 passed (2)" in result.output


def test_run_with_failure_exits_one(project):
    config = project("cli_failing_tests", FAILING)
    result = runner.invoke(app, ["run", config, "--no-color"])
    assert result.exit_code == 1
    assert "💥 Test add_returns_sum failed 1 assertions!" in result.output
    assert "Assertion of '2 + 2 == 5' failed" in result.output
    assert "1 failed | 1 passed (2)" in result.output


def test_run_respects_emoji_setting(project):
    config = project("cli_ascii_tests", PASSING, emoji=False)
    result = runner.invoke(app, ["run", config, "--no-color"])
    assert result.exit_code == 0
    assert "OK Test add_returns_sum passed." in result.output


def test_run_writes_artifacts(project, tmp_path):
    config = project("cli_artifact_tests", FAILING)
    out_dir = tmp_path / "runs"
    result = runner.invoke(app, ["run", config, "--no-color", "--output-dir", str(out_dir)])
    assert result.exit_code == 1

    run_dirs = list(out_dir.iterdir())
    assert len(run_dirs) == 1
    run_dir = run_dirs[0]
    assert f"Run saved: {run_dir}" in result.output

    xml = JUnitXml.fromfile(str(run_dir / "junit.xml"))
    suite = next(iter(xml))
    assert suite.name == "cli-suite"
    assert [c.name for c in suite] == ["add_returns_sum", "string_equality_check"]
    assert suite.failures == 1

    meta = yaml.safe_load((run_dir / "meta.yaml").read_text())
    assert meta["run_id"] == run_dir.name
    assert meta["tests"] == ["add_returns_sum", "string_equality_check"]
    assert meta["fail_test_count"] == 1
    assert meta["pass_test_count"] == 1

    debug_log = (run_dir / "debug.log").read_text()
    assert "Running test 'add_returns_sum'" in debug_log


def test_run_missing_config():
    result = runner.invoke(app, ["run", "nonexistent.yaml"])
    assert result.exit_code == 1
    assert "config file not found" in result.output


def test_run_invalid_config(tmp_path):
    config = tmp_path / "tallytest.yaml"
    config.write_text("tests: []\n")
    result = runner.invoke(app, ["run", str(config)])
    assert result.exit_code == 1
    assert "tests must not be empty" in result.output


def test_run_unresolvable_module(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "path", list(sys.path))
    config = tmp_path / "tallytest.yaml"
    config.write_text("tests:\n  - cli_module_that_does_not_exist\n")
    result = runner.invoke(app, ["run", str(config)])
    assert result.exit_code == 1
    assert "Cannot import test module" in result.output


def test_report_missing_dir():
    result = runner.invoke(app, ["report", "/tmp/nonexistent-run-dir"])
    assert result.exit_code != 0


def test_report_from_previous_run(project, tmp_path):
    config = project("cli_report_tests", PASSING)
    out_dir = tmp_path / "runs"
    runner.invoke(app, ["run", config, "--no-color", "--output-dir", str(out_dir)])
    run_dir = next(out_dir.iterdir())

    result = runner.invoke(app, ["report", str(run_dir)])
    assert result.exit_code == 0
    assert (run_dir / "report.html").exists()
    assert "Report generated" in result.output


def test_init_creates_example_files(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    assert (tmp_path / "tallytest" / "tallytest.yaml").exists()
    assert (tmp_path / "tallytest" / "example_tests.py").exists()


def test_init_skips_existing_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner.invoke(app, ["init", "--dir", "proj"])
    result = runner.invoke(app, ["init", "--dir", "proj"])
    assert result.exit_code == 0
    assert "already exists" in result.output


def test_init_project_runs(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "path", list(sys.path))
    runner.invoke(app, ["init", "--dir", "proj"])
    try:
        result = runner.invoke(app, ["run", "proj/tallytest.yaml", "--no-color"])
    finally:
        sys.modules.pop("example_tests", None)
    assert result.exit_code == 0
    assert "0 failed | 2 passed (2)" in result.output


def test_report_open_launches_browser(project, tmp_path, mocker):
    opened = mocker.patch("webbrowser.open")
    config = project("cli_open_tests", PASSING)
    out_dir = tmp_path / "runs"
    runner.invoke(app, ["run", config, "--no-color", "--output-dir", str(out_dir)])
    run_dir = next(out_dir.iterdir())

    result = runner.invoke(app, ["report", str(run_dir), "--open"])
    assert result.exit_code == 0
    opened.assert_called_once_with((run_dir / "report.html").resolve().as_uri())


def test_run_config_directory_is_rejected(tmp_path):
    result = runner.invoke(app, ["run", str(tmp_path)])
    assert result.exit_code == 1
    assert "config path is not a file" in result.output


def test_run_module_failing_at_import(project):
    config = project("cli_broken_import_tests", "raise RuntimeError('boom at import')\n")
    result = runner.invoke(app, ["run", config])
    assert result.exit_code == 1
    assert "Error: Cannot import test module 'cli_broken_import_tests'" in result.output
    assert "boom at import" in result.output
