from __future__ import annotations

from ..models.error_record import ErrorRecord
from ..models.parse_result import ValidationStats
from .validation import ValidationIssue

"""Stats aggregation for one parse pass.

StatsAccumulator is updated once per row while the pipeline runs and frozen
into ValidationStats when the pass completes. It also collects the error
messages (and their structured ErrorRecord twins) in the order found.
"""

__all__ = [
    "StatsAccumulator",
]


class StatsAccumulator:
    """Accumulates row counters and validation messages for one file."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        self.total_rows = 0
        self.valid_rows = 0
        self.invalid_rows = 0
        self.duplicate_rows = 0
        self.blocking = False
        self.errors: list[str] = []
        self.error_records: list[ErrorRecord] = []

    def record_row(self) -> None:
        """Count a parsed data row (before dedup)."""
        self.total_rows += 1

    def record_invalid(self) -> None:
        self.invalid_rows += 1

    def record_valid(self, count: int = 1) -> None:
        self.valid_rows += count

    def record_duplicates(self, count: int) -> None:
        self.duplicate_rows += count

    def add_issue(self, issue: ValidationIssue) -> None:
        """Append a validation message; blocking issues reject the upload."""
        if issue.blocking:
            self.blocking = True
        self.add_error(issue.message, issue.error_type, row=issue.row_number, column=issue.column)

    def add_error(self, message: str, error_type: str, *, row: int = -1, column: str | None = None) -> None:
        self.errors.append(message)
        self.error_records.append(
            ErrorRecord.create(
                file=self.file_name,
                row=row,
                error_type=error_type,
                message=message,
                column=column,
            )
        )

    def snapshot(self) -> ValidationStats:
        """Freeze the counters.

        Returns:
            ValidationStats with the current counts
        """
        return ValidationStats(
            total_rows=self.total_rows,
            valid_rows=self.valid_rows,
            invalid_rows=self.invalid_rows,
            duplicate_rows=self.duplicate_rows,
        )
