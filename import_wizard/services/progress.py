from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Validation progress display with tqdm (TTY only).

The validation engine reports an integer percentage through its progress
callback; ``ValidationProgressBar.update_to`` is meant to be passed as that
callback. In non-TTY environments (CI, redirected output) no bar is created
so logs stay free of control sequences.
"""

__all__ = [
    "ValidationProgressBar",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ValidationProgressBar:
    """Single tqdm bar counting 0..100 percent."""

    def __init__(self, *, description: str = "Validating") -> None:
        self.description = description
        self.percent = 0
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=100,
                desc=description,
                unit="%",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def update_to(self, percent: int) -> None:
        """Advance the bar to ``percent``; lower values (a restarted run) are ignored."""
        percent = max(0, min(100, percent))
        if percent <= self.percent:
            return
        if self.enabled and self.pbar is not None:
            self.pbar.update(percent - self.percent)
        self.percent = percent

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ValidationProgressBar:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
