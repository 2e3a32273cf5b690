from __future__ import annotations

import logging

from ..models.config_models import AliasCollisionPolicy, UploadOptions
from ..models.parse_result import ParseResult
from ..parsing.normalizer import build_header_mapping, normalize_row
from ..parsing.reader import read_csv_content
from .dedup import DuplicateFilter
from .stats import StatsAccumulator
from .validation import ValidationEngine

logger = logging.getLogger(__name__)

"""Parse pipeline orchestration for the CSV upload tool.

raw content -> reader -> header normalizer -> validation engine (per row)
-> dedup filter -> stats aggregator -> ParseResult

Parse-time problems are returned as data (ParseResult.errors / blocking).
Only two things escape: ParseError from the reader and
BlockingValidationError when a column rule raises; both abort the pass with
no partial result.
"""

__all__ = [
    "parse_csv",
]


def parse_csv(content: bytes | str, file_name: str, options: UploadOptions) -> ParseResult:
    """Run one full parse pass over a CSV file.

    Args:
        content: Raw file content
        file_name: Name reported in results and error records
        options: Column schema, max_rows, dedupe_on, alias collision policy

    Returns:
        ParseResult with cleaned data, stats and messages

    Raises:
        ParseError: Malformed CSV or undecodable content
        BlockingValidationError: A column rule raised
    """
    logger.info("parsing file=%s max_rows=%s dedupe_on=%s", file_name, options.max_rows, options.dedupe_on)
    table = read_csv_content(content, max_rows=options.max_rows)
    mapping = build_header_mapping(table.header, options.columns)
    acc = StatsAccumulator(file_name)
    notes = list(table.notes)

    for collision in mapping.collisions:
        notes.append(collision.describe())
        if options.alias_collision is AliasCollisionPolicy.ERROR:
            acc.blocking = True
            acc.add_error(
                f"Ambiguous columns: {collision.describe()}",
                "ALIAS_COLLISION",
                column=collision.canonical,
            )

    engine = ValidationEngine(options.columns, mapping.fields)
    missing = engine.missing_required()
    for issue in missing:
        acc.add_issue(issue)

    accepted = []
    for index, values in enumerate(table.rows):
        acc.record_row()
        normalized = normalize_row(values, mapping, options.alias_collision)
        row, issues = engine.validate_row(index + 1, normalized, table.raw_row(index))
        for issue in issues:
            acc.add_issue(issue)
        if row.invalid:
            acc.record_invalid()
        else:
            accepted.append(row)

    kept, dupes = DuplicateFilter(options.dedupe_on).filter(accepted, mapping.fields)
    acc.record_valid(len(kept))
    acc.record_duplicates(dupes)

    stats = acc.snapshot()
    data = [] if acc.blocking else [row.output for row in kept]
    logger.info(
        "parsed file=%s rows=%d valid=%d invalid=%d duplicates=%d errors=%d blocking=%s",
        file_name,
        stats.total_rows,
        stats.valid_rows,
        stats.invalid_rows,
        stats.duplicate_rows,
        len(acc.errors),
        acc.blocking,
    )
    return ParseResult(
        data=data,
        fields=mapping.fields,
        validation_stats=stats,
        file_name=file_name,
        errors=acc.errors,
        blocking=acc.blocking,
        missing_columns=[i.column for i in missing if i.column is not None],
        notes=notes,
        error_records=acc.error_records,
    )
