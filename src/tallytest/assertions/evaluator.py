from __future__ import annotations

import ast
import inspect
import linecache
import sys
from types import FrameType
from typing import Any

from tallytest.assertions.base import AssertionOutcome, Location
from tallytest.reporting import Reporter, get_reporter


def evaluate(
    condition: bool,
    expression: str,
    location: Location,
    msg: str = "",
    *args: Any,
    reporter: Reporter | None = None,
) -> bool:
    """Report a diagnostic if ``condition`` is false and return it unchanged.

    The condition must already be evaluated by the caller. ``msg`` is only
    formatted (printf-style, ``msg % args``) when the assertion fails.
    Nothing is counted here; the caller owns failure accounting.
    """
    if condition:
        return True

    message = _format_message(msg, args)
    outcome = AssertionOutcome(
        passed=False, expression=expression, location=location, message=message
    )
    (reporter or get_reporter()).assertion_failed(outcome)
    return False


def _format_message(msg: str, args: tuple[Any, ...]) -> str:
    if not args:
        return msg
    try:
        return msg % args
    except (TypeError, ValueError):
        # same fallback as logging: keep the raw message and arguments
        return f"{msg} {args!r}"


def _matching_call(node: ast.AST, method: str) -> bool:
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Attribute)
        and node.func.attr == method
    )


def _executing_call(frame: FrameType, method: str) -> tuple[ast.Call | None, str]:
    """Return the call node the frame is currently executing.

    Uses the instruction's source positions (Python 3.11+), so calls sharing
    a line, spanning several lines or sitting in a compound statement header
    resolve to the exact call that is running.
    """
    positions = inspect.getframeinfo(frame, context=0).positions
    if None in (
        positions.lineno,
        positions.end_lineno,
        positions.col_offset,
        positions.end_col_offset,
    ):
        return None, ""
    lines = linecache.getlines(frame.f_code.co_filename, frame.f_globals)
    if positions.end_lineno > len(lines):
        return None, ""

    # column offsets count utf-8 bytes
    chunk = [line.encode() for line in lines[positions.lineno - 1 : positions.end_lineno]]
    chunk[-1] = chunk[-1][: positions.end_col_offset]
    chunk[0] = chunk[0][positions.col_offset :]
    text = b"".join(chunk).decode(errors="replace")
    try:
        node = ast.parse(text, mode="eval").body
    except SyntaxError:
        return None, text
    return (node, text) if _matching_call(node, method) else (None, text)


def _line_call(frame: FrameType, method: str) -> tuple[ast.Call | None, str]:
    """Find the call on the caller's line when instruction positions are unavailable."""
    line = linecache.getline(frame.f_code.co_filename, frame.f_lineno, frame.f_globals)
    text = line.strip()
    if not text:
        return None, ""
    try:
        tree = ast.parse(text)
    except SyntaxError:
        # statement continues on the next line(s) or is a compound header
        return None, text
    calls = [node for node in ast.walk(tree) if _matching_call(node, method)]
    # ambiguous when several calls share the line
    return (calls[0], text) if len(calls) == 1 else (None, text)


def _find_call(frame: FrameType, method: str) -> tuple[ast.Call | None, str]:
    if sys.version_info >= (3, 11):
        return _executing_call(frame, method)
    return _line_call(frame, method)


def _describe(
    frame: FrameType, method: str, operands: tuple[Any, ...], binary: bool
) -> str:
    call, text = _find_call(frame, method)
    if call is not None and len(call.args) >= len(operands):
        parts = [ast.get_source_segment(text, arg) or "" for arg in call.args[: len(operands)]]
        if all(parts):
            return " == ".join(parts) if binary else parts[0]
    if binary:
        return f"{operands[0]!r} == {operands[1]!r}"
    return repr(operands[0])


class Checks:
    """Assertion helpers handed to a running test body.

    One instance exists per test invocation and holds that invocation's
    failed-assertion counter. Every helper evaluates its condition, reports a
    failure through :func:`evaluate`, adds 1 to :attr:`failed` on failure and
    returns the boolean outcome. Failures never interrupt the body.
    """

    def __init__(self, test_name: str, reporter: Reporter | None = None):
        self.test_name = test_name
        self.reporter = reporter
        self.failed = 0

    def _record(
        self,
        condition: bool,
        method: str,
        operands: tuple[Any, ...],
        binary: bool,
        expression: str | None,
        msg: str = "",
        args: tuple[Any, ...] = (),
    ) -> bool:
        # caller of the public helper: _record <- helper <- test body
        frame = inspect.currentframe().f_back.f_back
        try:
            location = Location(
                file=frame.f_code.co_filename,
                test_name=self.test_name,
                line=frame.f_lineno,
            )
            if expression is None and not condition:
                expression = _describe(frame, method, operands, binary)
        finally:
            del frame

        passed = evaluate(
            bool(condition),
            expression or "",
            location,
            msg,
            *args,
            reporter=self.reporter,
        )
        self.failed += 0 if passed else 1
        return passed

    def assert_that(self, condition: Any, *, expression: str | None = None) -> bool:
        return self._record(
            bool(condition), "assert_that", (condition,), False, expression
        )

    def assert_that_msg(
        self, condition: Any, msg: str, *args: Any, expression: str | None = None
    ) -> bool:
        return self._record(
            bool(condition), "assert_that_msg", (condition,), False, expression, msg, args
        )

    def assert_eq(self, a: Any, b: Any, *, expression: str | None = None) -> bool:
        return self._record(a == b, "assert_eq", (a, b), True, expression)

    def assert_eq_msg(
        self, a: Any, b: Any, msg: str, *args: Any, expression: str | None = None
    ) -> bool:
        return self._record(a == b, "assert_eq_msg", (a, b), True, expression, msg, args)

    def assert_eq_str(self, a: str, b: str, *, expression: str | None = None) -> bool:
        _require_str(a, b)
        return self._record(a == b, "assert_eq_str", (a, b), True, expression)

    def assert_eq_str_msg(
        self, a: str, b: str, msg: str, *args: Any, expression: str | None = None
    ) -> bool:
        _require_str(a, b)
        return self._record(
            a == b, "assert_eq_str_msg", (a, b), True, expression, msg, args
        )


def _require_str(a: Any, b: Any) -> None:
    for value in (a, b):
        if not isinstance(value, str):
            raise TypeError(
                f"assert_eq_str expects str operands, got {type(value).__name__}"
            )
