"""Base data structures for the assertion system."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Location:
    """Where an assertion was made.

    Attributes:
        file: Source file of the call site, as reported by the interpreter.
        test_name: Name of the test case the assertion belongs to.
        line: Line number of the call site.
    """

    file: str
    test_name: str
    line: int


@dataclass(frozen=True)
class AssertionOutcome:
    """Result of evaluating a single assertion.

    Produced and consumed inside one ``evaluate`` call; never stored.

    Attributes:
        passed: The evaluated condition.
        expression: Source text of the checked expression (e.g. "2 + 2 == 5").
        location: Call site of the assertion.
        message: Fully formatted user message, empty when none was given.
    """

    passed: bool
    expression: str
    location: Location
    message: str = ""
