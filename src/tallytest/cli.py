from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer

if TYPE_CHECKING:
    from tallytest.runner import RunSummary

app = typer.Typer(name="tallytest", help="Run registered test cases and report pass/fail counts")


def _write_meta(run_dir: Path, suite_name: str, summary: RunSummary) -> Path:
    """Write meta.yaml describing the run."""
    import importlib.metadata

    import yaml

    try:
        version = importlib.metadata.version("tallytest")
    except importlib.metadata.PackageNotFoundError:
        version = "unknown"

    meta: dict[str, Any] = {
        "run_id": run_dir.name,
        "suite": suite_name,
        "timestamp": datetime.fromtimestamp(summary.start_time, timezone.utc).isoformat(),
        "tests": [r.name for r in summary.results],
        "test_count": summary.test_count,
        "fail_test_count": summary.fail_test_count,
        "pass_test_count": summary.pass_test_count,
        "duration": summary.duration,
        "tallytest_version": version,
    }
    meta_path = run_dir / "meta.yaml"
    meta_path.write_text(yaml.dump(meta, default_flow_style=False, sort_keys=False))
    return meta_path


@app.command()
def run(
    config: str = typer.Argument(help="Path to tallytest YAML config"),
    output_dir: str | None = typer.Option(
        None, help="Write junit.xml, meta.yaml and debug.log under this directory"
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable ANSI colors"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output to terminal"
    ),
):
    """Run the configured tests. Exits 1 if any test failed."""
    from tallytest.config import load_config, resolve_tests
    from tallytest.reporting.console import ConsoleReporter
    from tallytest.reporting.junit import write_junit
    from tallytest.runner import Runner
    from tallytest.verbose import setup_logger

    config_path = Path(config)
    if not config_path.exists():
        typer.echo(f"Error: config file not found: {config}", err=True)
        raise typer.Exit(1)
    if not config_path.is_file():
        typer.echo(f"Error: config path is not a file: {config}", err=True)
        raise typer.Exit(1)

    try:
        run_config = load_config(config_path)
        cases = resolve_tests(run_config)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    run_dir: Path | None = None
    if output_dir is not None:
        run_id = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")
        run_dir = Path(output_dir) / run_id
        run_dir.mkdir(parents=True, exist_ok=True)
        logger = setup_logger(
            run_dir / "debug.log", verbose=verbose, logger_name=f"tallytest_{run_id}"
        )
    else:
        logger = setup_logger(None, verbose=verbose, logger_name="tallytest_cli")

    reporter = ConsoleReporter(
        color=False if no_color else run_config.color, emoji=run_config.emoji
    )
    runner = Runner(reporter=reporter, logger=logger)
    summary = runner.execute(cases)

    if run_dir is not None:
        write_junit(run_dir, summary, suite_name=run_config.name)
        _write_meta(run_dir, run_config.name, summary)
        typer.echo(f"Run saved: {run_dir}")

    if not summary.all_passed:
        raise typer.Exit(1)


@app.command()
def report(
    run_dir: str = typer.Argument(help="Path to run output directory"),
    open_report: bool = typer.Option(
        False, "--open", help="Open report.html in browser after generating"
    ),
):
    """Generate an HTML report from a previous run."""
    from tallytest.reporting.junit import generate_report

    run_path = Path(run_dir)
    if not run_path.exists() or not (run_path / "junit.xml").exists():
        typer.echo(f"Error: not a valid run directory: {run_dir}", err=True)
        raise typer.Exit(1)

    report_path = generate_report(run_path)
    typer.echo(f"Report generated: {report_path}")

    if open_report:
        import webbrowser

        webbrowser.open(report_path.resolve().as_uri())


EXAMPLE_CONFIG = """\
name: example
paths:
  - .
tests:
  - example_tests
"""

EXAMPLE_TESTS = '''\
from tallytest import test


@test
def add_returns_sum(t):
    t.assert_eq(2 + 2, 4)


@test
def string_equality_check(t):
    t.assert_eq_str("a", "a")
'''


@app.command()
def init(
    dir: str = typer.Option(
        "tallytest", "--dir", help="Directory to initialize the test project in"
    ),
):
    """Initialize a new test project with an example config and test module."""
    project_dir = Path(dir)
    project_dir.mkdir(parents=True, exist_ok=True)

    config_path = project_dir / "tallytest.yaml"
    if config_path.exists():
        typer.echo(f"tallytest.yaml already exists in {dir}, skipping.")
        return

    config_path.write_text(EXAMPLE_CONFIG)
    tests_path = project_dir / "example_tests.py"
    if not tests_path.exists():
        tests_path.write_text(EXAMPLE_TESTS)

    typer.echo(f"Initialized test project in {dir}:")
    typer.echo("  tallytest.yaml    - example run config")
    typer.echo("  example_tests.py  - example test module")
