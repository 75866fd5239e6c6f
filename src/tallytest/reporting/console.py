from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from tallytest.assertions.base import AssertionOutcome
    from tallytest.runner import RunSummary

GRY = "\033[0;37m"
GRYB = "\033[1;37m"
RED = "\033[1;31m"
GRN = "\033[1;32m"
RST = "\033[0m"

EMOJI_MARKERS = {
    "fail": "❌",
    "expr": "💬",
    "note": "📝",
    "boom": "💥",
    "ok": "✅",
}

ASCII_MARKERS = {
    "fail": "FAIL",
    "expr": "MSG",
    "note": "NOTE",
    "boom": "BOOM",
    "ok": "OK",
}


class ConsoleReporter:
    """Render run events as text lines.

    Diagnostics, per-test lines and fatal errors go to ``err`` (stderr by
    default); the run header and the summary go to ``out`` (stdout by default).
    Streams left as ``None`` are looked up on ``sys`` at write time.
    """

    def __init__(
        self,
        color: bool | None = None,
        emoji: bool = True,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ):
        self.color = color
        self.markers = EMOJI_MARKERS if emoji else ASCII_MARKERS
        self._out = out
        self._err = err

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err if self._err is not None else sys.stderr

    def _use_color(self, stream: TextIO) -> bool:
        if self.color is not None:
            return self.color
        if "NO_COLOR" in os.environ:
            return False
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def _codes(self, stream: TextIO) -> dict[str, str]:
        if self._use_color(stream):
            return {"gry": GRY, "gryb": GRYB, "red": RED, "grn": GRN, "rst": RST}
        return dict.fromkeys(("gry", "gryb", "red", "grn", "rst"), "")

    def _write(self, stream: TextIO, text: str) -> None:
        stream.write(text)
        stream.flush()

    def assertion_failed(self, outcome: AssertionOutcome) -> None:
        loc = outcome.location
        m = self.markers
        self._write(
            self.err,
            f"{m['fail']} {loc.file}:{loc.line} -> {loc.test_name}\n"
            f"{m['expr']} Assertion of '{outcome.expression}' failed\n"
            f"{m['note']} {outcome.message}\n",
        )

    def run_started(self, test_count: int) -> None:
        c = self._codes(self.out)
        self._write(
            self.out, f"{c['gry']}INFO: Running a total of {test_count} tests.\n\n"
        )

    def test_passed(self, name: str) -> None:
        c = self._codes(self.err)
        self._write(
            self.err,
            f"{self.markers['ok']} Test {c['gryb']}{name}{c['gry']} passed.\n",
        )

    def test_failed(self, name: str, failed_assertions: int) -> None:
        c = self._codes(self.err)
        self._write(
            self.err,
            f"{self.markers['boom']} Test {c['gryb']}{name}{c['gry']} "
            f"failed {failed_assertions} assertions!\n",
        )

    def run_finished(self, summary: RunSummary) -> None:
        c = self._codes(self.out)
        self._write(
            self.out,
            "\n"
            f"{c['gry']}    Tests  {c['red']}{summary.fail_test_count} failed{c['gry']}"
            f" | {c['grn']}{summary.pass_test_count} passed{c['gry']}"
            f" ({summary.test_count})\n{c['rst']}"
            f"{c['gry']} Start at  {c['rst']}{summary.started_at}\n"
            f"{c['gry']} Duration  {c['rst']}{summary.duration}s\n",
        )

    def fatal(self, message: str) -> None:
        self._write(self.err, f"ERROR: {message}\n")
