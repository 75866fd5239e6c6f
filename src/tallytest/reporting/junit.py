from __future__ import annotations

from pathlib import Path
from typing import Any

from junitparser import TestCase, TestSuite, JUnitXml, Failure

from tallytest.runner import RunSummary


def write_junit(run_dir: Path, summary: RunSummary, suite_name: str = "tallytest") -> Path:
    """Write junit.xml for one run, one testcase per test in run order, return path."""
    xml = JUnitXml()
    suite = TestSuite(suite_name)

    suite.add_property("start_time", summary.started_at)
    suite.add_property("test_count", str(summary.test_count))
    suite.add_property("fail_test_count", str(summary.fail_test_count))
    suite.add_property("pass_test_count", str(summary.pass_test_count))

    for result in summary.results:
        case = TestCase(result.name)
        case.classname = suite_name
        if not result.passed:
            case.result = [Failure(f"failed {result.failed_assertions} assertions")]
        suite.add_testcase(case)

    # Set time after add_testcase (add_testcase resets it via update_statistics)
    suite.time = float(summary.duration)

    # Use append (not +=) to preserve properties and time
    xml.append(suite)

    junit_path = run_dir / "junit.xml"
    xml.write(str(junit_path), pretty=True)
    return junit_path


def generate_report(run_dir: Path) -> Path:
    """Render junit.xml → report.html using Jinja2 template, return path."""
    import yaml
    from jinja2 import Environment, FileSystemLoader

    junit_path = run_dir / "junit.xml"
    report_path = run_dir / "report.html"

    # Load run metadata
    meta: dict = {}
    meta_path = run_dir / "meta.yaml"
    if meta_path.exists():
        try:
            meta = yaml.safe_load(meta_path.read_text()) or {}
        except yaml.YAMLError:
            meta = {}

    xml = JUnitXml.fromfile(str(junit_path))

    suites: list[dict[str, Any]] = []
    for suite in xml:
        cases = []
        for case in suite:
            result = None
            if case.result:
                result = {
                    "status": type(case.result[0]).__name__,
                    "message": case.result[0].message or "",
                }
            cases.append({"name": case.name, "result": result})

        suites.append(
            {
                "name": suite.name,
                "tests": suite.tests,
                "failures": suite.failures,
                "time": suite.time,
                "properties": {p.name: p.value for p in suite.properties()},
                "cases": cases,
            }
        )

    debug_log = ""
    debug_path = run_dir / "debug.log"
    if debug_path.exists():
        debug_log = debug_path.read_text(encoding="utf-8", errors="replace")

    total_tests = sum(s["tests"] for s in suites)
    total_failures = sum(s["failures"] for s in suites)

    tmpl_dir = Path(__file__).parent / "templates"
    env = Environment(loader=FileSystemLoader(str(tmpl_dir)), autoescape=True)
    template = env.get_template("report.html.j2")

    html = template.render(
        suites=suites,
        total_tests=total_tests,
        total_failures=total_failures,
        total_passed=total_tests - total_failures,
        debug_log=debug_log,
        run_dir=str(run_dir),
        meta=meta,
    )
    report_path.write_text(html, encoding="utf-8")
    return report_path
