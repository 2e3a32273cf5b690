from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for structured error logging.

Every error message produced while parsing or uploading a CSV file is also
kept as an ErrorRecord. row=-1 is the sentinel for file-level errors (missing
required column, parse failure, alias collision, upload failure) where no
single data row is responsible.

The record shape is fixed by contracts/error_log_schema.json.
"""

__all__ = [
    "ErrorRecord",
    "ERROR_TYPES",
]

# error_type values emitted by the pipeline and the session
ERROR_TYPES = frozenset({
    "VALIDATION_FAILED",   # validate() returned False (blocking)
    "ROW_REJECTED",        # transform_and_validate() returned valid=False
    "MISSING_COLUMN",      # required column absent from header (blocking)
    "ALIAS_COLLISION",     # two headers resolved to one column with policy=error (blocking)
    "TRANSFORM_ABORTED",   # transform_and_validate() raised
    "PARSE_ERROR",         # malformed CSV
    "INPUT_SELECTION",     # wrong number / type of files
    "UPLOAD_FAILED",       # transport raised
})


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: CSV filename being processed
        row: Data row number (1-based). Use -1 for file-level errors
        column: Column input_name involved, or None
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human-readable message (same text shown to the user)
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int
    column: str | None
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        file: str, row: int, error_type: str, message: str, column: str | None = None
    ) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp.

        Parameters:
            file: CSV filename being processed
            row: Data row number (1-based). Use -1 for file-level errors
            error_type: Error classification in UPPER_SNAKE_CASE format
            message: Human-readable message
            column: Column input_name involved, if any

        Returns:
            New ErrorRecord instance with current UTC timestamp
        """
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            column=column,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize ErrorRecord to JSON Lines format.

        Returns:
            JSON string representation without extra keys (contract enforced)
        """
        return json.dumps(asdict(self), ensure_ascii=False)
