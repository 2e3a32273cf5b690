from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""RowData model for the CSV upload pipeline.

RowData carries one CSV record between the validation engine and the dedup
filter. row_number is the 1-based data row number (the header is not counted).
"""

__all__ = [
    "RowData",
]


@dataclass(frozen=True)
class RowData:
    """Logical representation of a single CSV row after alias resolution.

    values holds the NormalizedRow (canonical input_name -> value, unknown
    columns under their original header). output holds the OutputRow
    (api_name -> final value) and is only meaningful when invalid is False.
    """
    row_number: int  # 1-based data row number
    values: dict[str, Any]  # NormalizedRow
    raw_values: dict[str, Any] | None = None  # RawRow (original header -> string) for error reporting
    output: dict[str, Any] = field(default_factory=dict)  # OutputRow
    invalid: bool = False  # Rejected by validate or transform_and_validate
