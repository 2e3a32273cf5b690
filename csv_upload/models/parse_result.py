from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .error_record import ErrorRecord

"""Parse result models for the CSV upload pipeline.

ValidationStats holds the aggregate counters of one parse pass and ParseResult
is the terminal artifact handed back to the caller (the session or the CLI).
Both are frozen: they are built once when the pass completes.
"""

__all__ = [
    "ParseResult",
    "ValidationStats",
]


@dataclass(frozen=True)
class ValidationStats:
    """Aggregate row counters of one parse pass.

    total_rows counts data rows after max_rows truncation and before dedup.
    Every row lands in exactly one of valid / invalid / duplicate.
    """
    total_rows: int = 0
    valid_rows: int = 0
    invalid_rows: int = 0
    duplicate_rows: int = 0

    @property
    def balanced(self) -> bool:
        """True when total == valid + invalid + duplicate."""
        return self.total_rows == self.valid_rows + self.invalid_rows + self.duplicate_rows


@dataclass(frozen=True)
class ParseResult:
    """Outcome of one parse invocation (owned by the caller after return).

    data is empty whenever blocking is True: a blocking error rejects the whole
    dataset even if individual rows were fine.
    """
    data: list[dict[str, Any]]  # OutputRows (api_name -> value), file order
    fields: frozenset[str]  # canonical names observed in the header
    validation_stats: ValidationStats
    file_name: str
    errors: list[str]  # blocking and row-level messages, in the order found
    blocking: bool = False
    missing_columns: list[str] = field(default_factory=list)  # required input_names absent
    notes: list[str] = field(default_factory=list)  # non-fatal notes (truncation, collisions)
    # Timestamps differ between runs, so records stay out of equality
    error_records: list[ErrorRecord] = field(default_factory=list, compare=False)

    @property
    def can_upload(self) -> bool:
        """True when the dataset may be handed to the upload transport."""
        return not self.blocking and not self.missing_columns and len(self.data) > 0

    def column_is_present(self, input_name: str) -> bool:
        return input_name in self.fields
