"""Reporting collaborators: console output, JUnit XML and HTML reports."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Protocol

if TYPE_CHECKING:
    from tallytest.assertions.base import AssertionOutcome
    from tallytest.runner import RunSummary


class Reporter(Protocol):
    """Sink for every event the evaluator and the runner emit."""

    def assertion_failed(self, outcome: AssertionOutcome) -> None: ...

    def run_started(self, test_count: int) -> None: ...

    def test_passed(self, name: str) -> None: ...

    def test_failed(self, name: str, failed_assertions: int) -> None: ...

    def run_finished(self, summary: RunSummary) -> None: ...

    def fatal(self, message: str) -> None: ...


_reporter: Reporter | None = None


def get_reporter() -> Reporter:
    """Return the process-wide reporter, creating a ConsoleReporter on first use."""
    global _reporter
    if _reporter is None:
        from tallytest.reporting.console import ConsoleReporter

        _reporter = ConsoleReporter()
    return _reporter


def set_reporter(reporter: Reporter | None) -> None:
    """Replace the process-wide reporter. ``None`` restores the default."""
    global _reporter
    _reporter = reporter


@contextmanager
def use_reporter(reporter: Reporter) -> Iterator[Reporter]:
    """Install ``reporter`` process-wide for the duration of the block."""
    global _reporter
    previous = _reporter
    _reporter = reporter
    try:
        yield reporter
    finally:
        _reporter = previous
