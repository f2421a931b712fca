"""Single-line progress bar for long CLI runs (tick loops, large rebuilds)."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import IO, Optional


@dataclass
class ProgressBar:
    total: Optional[int] = None
    prefix: str = ""
    width: int = 30
    stream: IO[str] = field(default_factory=lambda: sys.stderr)
    _active: bool = False

    def render(self, current: int, extra: str = "") -> str:
        total = self.total if self.total and self.total > 0 else None
        width = max(10, self.width)
        if total:
            frac = min(max(current / total, 0.0), 1.0)
            filled = int(width * frac)
            bar = "#" * filled + "-" * (width - filled)
            line = f"{self.prefix} [{bar}] {frac * 100:5.1f}% {current}/{total}"
        else:
            bar = "#" * (current % (width + 1))
            line = f"{self.prefix} [{bar:<{width}}] {current}"
        if extra:
            line = f"{line} {extra}"
        return line

    def update(self, current: int, extra: str = "") -> None:
        self._active = True
        self.stream.write("\r" + self.render(current, extra))
        self.stream.flush()

    def finish(self) -> None:
        if self._active:
            self.stream.write("\n")
            self.stream.flush()
            self._active = False

    def __enter__(self) -> "ProgressBar":
        return self

    def __exit__(self, *exc) -> None:
        self.finish()
