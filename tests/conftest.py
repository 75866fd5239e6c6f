"""Pytest configuration and fixtures."""

import logging

import pytest

from tallytest.registry import default_registry
from tallytest.reporting import set_reporter
from tallytest.reporting.console import ConsoleReporter


@pytest.fixture(autouse=True)
def cleanup_loggers():
    """Clean up tallytest loggers after each test to prevent name collisions."""
    yield

    # Remove all tallytest loggers from registry
    loggers_to_remove = [
        name
        for name in logging.Logger.manager.loggerDict.keys()
        if name.startswith("tallytest")
    ]

    for name in loggers_to_remove:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        del logging.Logger.manager.loggerDict[name]


@pytest.fixture(autouse=True)
def reset_process_state():
    """Start every test with an empty default registry and the default reporter."""
    default_registry().clear()
    set_reporter(None)
    yield
    default_registry().clear()
    set_reporter(None)


@pytest.fixture
def reporter():
    """Plain (no color) reporter writing to the current sys streams."""
    return ConsoleReporter(color=False)


class FixedClock:
    """Clock returning scripted timestamps."""

    def __init__(self, *times: float, hms: str = "12:34:56"):
        self.times = list(times)
        self.hms = hms
        self.formatted: list[float] = []

    def now(self) -> float:
        return self.times.pop(0)

    def format_hms(self, timestamp: float) -> str:
        self.formatted.append(timestamp)
        return self.hms


@pytest.fixture
def fixed_clock():
    return FixedClock(1000.2, 1003.9)


@pytest.fixture
def make_clock():
    return FixedClock
