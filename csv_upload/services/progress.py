from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Upload progress display with tqdm (TTY only).

UploadProgressBar is a sink for the progress fractions the upload session
accepts from the transport. In non-TTY environments (CI, piped output) the
bar is disabled to avoid ANSI control sequence spam; fractions are still
tracked so callers can read the last value.
"""

__all__ = [
    "UploadProgressBar",
    "is_tty_enabled",
]

# Bar resolution: one step per 0.1 %
_SCALE = 1000


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


class UploadProgressBar:
    """Progress bar for a single upload, fed with fractions in [0, 1]."""

    def __init__(self, file_name: str, *, description: str = "Uploading") -> None:
        self.file_name = file_name
        self.description = description
        self.fraction = 0.0
        self._position = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=_SCALE,
                desc=f"{description} ({file_name})",
                unit="step",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
                bar_format="{desc}: {percentage:3.1f}%|{bar}|",
            )
        else:
            self.pbar = None

    def __call__(self, fraction: float) -> None:
        """Advance the bar to fraction (values outside [0, 1] are clamped)."""
        fraction = min(max(fraction, 0.0), 1.0)
        self.fraction = fraction
        target = round(fraction * _SCALE)
        if self.enabled and self.pbar is not None and target > self._position:
            self.pbar.update(target - self._position)
        self._position = max(self._position, target)

    def finish(self, success: bool = True) -> None:
        """Mark the upload finished (fills the bar on success)."""
        if success:
            self(1.0)
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(status="done" if success else "failed")

    def close(self) -> None:
        """Close the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> UploadProgressBar:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
