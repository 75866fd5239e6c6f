"""Assertion system for test bodies."""

from tallytest.assertions.base import AssertionOutcome, Location
from tallytest.assertions.evaluator import Checks, evaluate

__all__ = ["AssertionOutcome", "Checks", "Location", "evaluate"]
