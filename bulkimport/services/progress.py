from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

The batch driver reports the processed-row count after every row through a plain
callback. ProgressTracker is such a callback: it moves a single tqdm bar in a terminal
and does nothing in non-TTY environments (CI, piped output) to avoid ANSI spam.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


class ProgressTracker:
    """Row progress bar usable directly as the driver's progress callback.

    Calling the tracker with the processed count moves the bar to that count. Counts
    only move forward; a repeated or smaller count is ignored.
    """

    def __init__(self, total_rows: int, *, description: str = "Importing rows") -> None:
        """Initialize progress tracker.

        Args:
            total_rows: Total number of rows in the batch
            description: Description for the progress bar
        """
        self.total_rows = total_rows
        self.description = description
        self.processed = 0

        # Create tqdm instance only if TTY is enabled
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,  # Standard width for consistency
                ascii=True,  # ASCII chars for better compatibility
            )
        else:
            self.pbar = None

    def __call__(self, processed: int) -> None:
        if processed <= self.processed:
            return
        step = processed - self.processed
        self.processed = processed
        if self.enabled and self.pbar is not None:
            self.pbar.update(step)

    @property
    def percent(self) -> int:
        """Processed share rounded to an int, capped at 100."""
        if self.total_rows == 0:
            return 0
        return min(100, round(self.processed / self.total_rows * 100))

    def set_postfix(self, **kwargs: Any) -> None:
        """Set postfix information (stats) on the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        """Close the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
