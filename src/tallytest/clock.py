"""Wall-clock access for run timing."""

from __future__ import annotations

import time


class Clock:
    def now(self) -> float:
        """Seconds since the epoch."""
        return time.time()

    def format_hms(self, timestamp: float) -> str:
        """Render ``timestamp`` as local ``HH:MM:SS``."""
        return time.strftime("%H:%M:%S", time.localtime(timestamp))
