from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..models.row_data import RowData

"""Duplicate filter for accepted rows.

Rows are keyed on the normalized value of the dedupe_on column; the first
occurrence in file order is kept and later ones are discarded. Discards are
counted as duplicates, never as valid or invalid.
"""

__all__ = [
    "DuplicateFilter",
]

logger = logging.getLogger(__name__)


class DuplicateFilter:

    def __init__(self, dedupe_on: str | None) -> None:
        self.dedupe_on = dedupe_on

    def filter(self, rows: Sequence[RowData], fields: Iterable[str]) -> tuple[list[RowData], int]:
        """Remove duplicate rows.

        Returns:
            (deduplicated_rows, duplicate_count)
        """
        if self.dedupe_on is None:
            return list(rows), 0

        if self.dedupe_on not in set(fields):
            logger.warning("Dedup key column '%s' not found in file; skipping dedup", self.dedupe_on)
            return list(rows), 0

        seen: set[str] = set()
        kept: list[RowData] = []
        for row in rows:
            key = row.values.get(self.dedupe_on)
            if key in seen:
                logger.debug("row=%d rejected: duplicate %s=%r", row.row_number, self.dedupe_on, key)
                continue
            seen.add(key)
            kept.append(row)

        dupes = len(rows) - len(kept)
        if dupes > 0:
            logger.warning(
                "Duplicate check: %d duplicate row(s) removed on key '%s'. Rows: %d -> %d",
                dupes, self.dedupe_on, len(rows), len(kept),
            )
        return kept, dupes
