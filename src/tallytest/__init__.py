"""A small unit-test harness: declare tests, run them, count failures."""

from tallytest.assertions import AssertionOutcome, Checks, Location, evaluate
from tallytest.registry import Registry, TestCase, default_registry, test
from tallytest.runner import Runner, RunSummary, TestResult, main, run_all

__all__ = [
    "AssertionOutcome",
    "Checks",
    "Location",
    "Registry",
    "RunSummary",
    "Runner",
    "TestCase",
    "TestResult",
    "default_registry",
    "evaluate",
    "main",
    "run_all",
    "test",
]
