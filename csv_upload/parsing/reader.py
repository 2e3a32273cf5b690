from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

"""CSV reader for the upload pipeline.

The first non-blank line is the header; every following record is a data row.
All cells are read as strings (no NA / dtype inference) so the column rules
see exactly what the user typed.

- Malformed structure (unterminated quote, too many fields) -> ParseError
- Content that is not UTF-8 text -> ParseError
- Zero bytes or header only -> zero rows, not an error
- max_rows: extra data rows are dropped and a note is recorded
"""

__all__ = [
    "CsvTable",
    "ParseError",
    "decode_content",
    "read_csv_content",
]

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Raised when the file content cannot be parsed as CSV."""


@dataclass
class CsvTable:
    header: list[str]
    rows: list[list[str]]  # aligned with header; short records padded with ""
    truncated: bool = False
    notes: list[str] = field(default_factory=list)

    def raw_row(self, index: int) -> dict[str, str]:
        """RawRow view (original header -> value) of the data row at index."""
        return dict(zip(self.header, self.rows[index], strict=False))


def decode_content(content: bytes | str) -> str:
    """Decode uploaded bytes as UTF-8 (BOM tolerated)."""
    if isinstance(content, str):
        return content.removeprefix("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"file is not valid UTF-8 text: {e}") from e


def _cell(value: Any) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value)


def read_csv_content(content: bytes | str, max_rows: int | None = None) -> CsvTable:
    """Parse CSV content into a header and string-valued rows.

    Parameters
    ----------
    content: raw file content (bytes are decoded as UTF-8)
    max_rows: keep at most this many data rows (None = all)
    """
    text = decode_content(content)
    if not text.strip():
        return CsvTable(header=[], rows=[])

    # Header is read as a plain row so duplicate names are not mangled.
    # header row + max_rows + one extra row to detect truncation
    nrows = max_rows + 2 if max_rows is not None else None
    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            nrows=nrows,
        )
    except pd.errors.EmptyDataError:
        return CsvTable(header=[], rows=[])
    except pd.errors.ParserError as e:
        raise ParseError(f"malformed CSV: {e}") from e

    if df.shape[0] == 0:
        return CsvTable(header=[], rows=[])
    header = [_cell(c).strip() for c in df.iloc[0].tolist()]
    data_part = df.iloc[1:]
    truncated = max_rows is not None and len(data_part) > max_rows
    if truncated:
        data_part = data_part.iloc[:max_rows]

    rows = [[_cell(v) for v in record] for record in data_part.itertuples(index=False, name=None)]

    notes: list[str] = []
    if truncated:
        notes.append(f"Only the first {max_rows} rows were read; the rest of the file was ignored.")
        logger.info("csv truncated at max_rows=%d", max_rows)
    logger.debug("csv parsed columns=%s rows=%d", header, len(rows))
    return CsvTable(header=header, rows=rows, truncated=truncated, notes=notes)
