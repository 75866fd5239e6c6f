from __future__ import annotations

import logging
from dataclasses import dataclass, asdict, field
from typing import Any, Iterable, NoReturn

from tallytest.clock import Clock
from tallytest.registry import TestCase, default_registry
from tallytest.reporting import Reporter, get_reporter, use_reporter


@dataclass
class TestResult:
    __test__ = False

    name: str
    failed_assertions: int

    @property
    def passed(self) -> bool:
        return self.failed_assertions == 0


@dataclass
class RunSummary:
    """Aggregate outcome of one run.

    Attributes:
        test_count: Number of test cases run.
        fail_test_count: Test cases with at least one failed assertion.
        pass_test_count: ``test_count - fail_test_count``.
        start_time: Epoch seconds at which the first test started.
        started_at: ``start_time`` rendered as local ``HH:MM:SS``.
        duration: Whole seconds between start and end of the run.
        results: Per-test results in registry order.
    """

    test_count: int
    fail_test_count: int
    pass_test_count: int
    start_time: float
    started_at: str
    duration: int
    results: list[TestResult] = field(default_factory=list)

    @property
    def all_passed(self) -> bool:
        return self.fail_test_count == 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Runner:
    """Runs registered test cases one after another and reports the outcome."""

    def __init__(
        self,
        reporter: Reporter | None = None,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ):
        self.reporter = reporter
        self.clock = clock or Clock()
        self.logger = logger or logging.getLogger("tallytest")

    def execute(self, registry: Iterable[TestCase]) -> RunSummary:
        """Run every test case in order. Exits the process on an empty registry."""
        reporter = self.reporter or get_reporter()
        cases = list(registry)

        test_count = len(cases)
        if test_count == 0:
            self.logger.debug("Refusing to run an empty registry")
            reporter.fatal("No tests are defined!")
            raise SystemExit(1)

        with use_reporter(reporter):
            reporter.run_started(test_count)
            self.logger.debug(f"Starting run of {test_count} test(s)")

            results: list[TestResult] = []
            fail_test_count = 0
            start_time = self.clock.now()
            for case in cases:
                self.logger.debug(f"Running test '{case.name}'")
                failed_assertions = case()
                results.append(TestResult(case.name, failed_assertions))
                if failed_assertions > 0:
                    reporter.test_failed(case.name, failed_assertions)
                    fail_test_count += 1
                else:
                    reporter.test_passed(case.name)
                self.logger.debug(
                    f"Test '{case.name}' finished with {failed_assertions} failed assertion(s)"
                )
            end_time = self.clock.now()

            summary = RunSummary(
                test_count=test_count,
                fail_test_count=fail_test_count,
                pass_test_count=test_count - fail_test_count,
                start_time=start_time,
                started_at=self.clock.format_hms(start_time),
                duration=int(end_time) - int(start_time),
                results=results,
            )
            reporter.run_finished(summary)

        self.logger.debug(
            f"Run complete: {summary.fail_test_count} failed, "
            f"{summary.pass_test_count} passed ({summary.test_count})"
        )
        return summary


def run_all(
    registry: Iterable[TestCase] | None = None,
    reporter: Reporter | None = None,
    clock: Clock | None = None,
    logger: logging.Logger | None = None,
) -> bool:
    """Run ``registry`` (the default registry when omitted).

    Returns True when no test failed.
    """
    if registry is None:
        registry = default_registry()
    runner = Runner(reporter=reporter, clock=clock, logger=logger)
    return runner.execute(registry).all_passed


def main(registry: Iterable[TestCase] | None = None) -> NoReturn:
    """Run ``registry`` and exit the process: 0 when all tests passed, else 1."""
    raise SystemExit(0 if run_all(registry) else 1)
