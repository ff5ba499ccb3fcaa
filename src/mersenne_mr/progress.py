# src/mersenne_mr/progress.py
from __future__ import annotations

import sys
import time
from typing import TextIO

_BAR_LEN = 24
_THROTTLE_S = 0.05
_SPIN = "|/-\\"


class ScanProgress:
    """One-line spinner + bar for Mersenne scans, redrawn in place."""

    def __init__(self, total: int, *, enabled: bool = True, stream: TextIO | None = None):
        self.total = max(1, int(total))
        self.enabled = enabled
        self.stream = stream if stream is not None else sys.stdout
        self.started = time.perf_counter()
        self._last_draw = 0.0
        self._tick = 0

    def elapsed(self) -> float:
        return time.perf_counter() - self.started

    def update(self, done: int, p: int, hits: int) -> None:
        if not self.enabled:
            return
        now = time.perf_counter()
        if now - self._last_draw < _THROTTLE_S and done < self.total:
            return
        self._last_draw = now
        self._tick = (self._tick + 1) % len(_SPIN)

        frac = min(max(done / self.total, 0.0), 1.0)
        fill = int(frac * _BAR_LEN)
        bar = "#" * fill + "-" * (_BAR_LEN - fill)
        self.stream.write(
            f"\r[{_SPIN[self._tick]}] [{bar}] {int(frac * 100):3d}%  p={p}  found={hits}"
        )
        self.stream.flush()

    def clear(self) -> None:
        if not self.enabled:
            return
        self.stream.write("\r" + " " * 80 + "\r")
        self.stream.flush()
