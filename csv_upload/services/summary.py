from __future__ import annotations

from ..models.parse_result import ParseResult

"""Summary line rendering for the CSV upload tool.

Format (contracts/summary_output.md):
SUMMARY file={name} rows={total} valid={valid} invalid={invalid}
duplicates={duplicates} errors={errors} can_upload={true|false}
"""

__all__ = ["render_summary_body", "render_summary_line"]


def render_summary_body(result: ParseResult) -> str:
    """Render the key=value part of the SUMMARY line, without the label.

    The labeled logger adds the "SUMMARY" prefix itself, so the CLI logs this.
    """
    stats = result.validation_stats
    # Spaces would break the key=value contract
    file_name = result.file_name.replace(" ", "_") or "-"
    return (
        f"file={file_name} "
        f"rows={stats.total_rows} "
        f"valid={stats.valid_rows} "
        f"invalid={stats.invalid_rows} "
        f"duplicates={stats.duplicate_rows} "
        f"errors={len(result.errors)} "
        f"can_upload={'true' if result.can_upload else 'false'}"
    )


def render_summary_line(result: ParseResult) -> str:
    """Render a SUMMARY line from a ParseResult.

    Args:
        result: ParseResult of one parse pass

    Returns:
        Formatted SUMMARY line string matching the contract regex

    Examples:
        >>> from csv_upload.models.parse_result import ValidationStats
        >>> result = ParseResult(
        ...     data=[{"email": "a@example.com"}], fields=frozenset({"email"}),
        ...     validation_stats=ValidationStats(1, 1, 0, 0),
        ...     file_name="people.csv", errors=[],
        ... )
        >>> render_summary_line(result)
        'SUMMARY file=people.csv rows=1 valid=1 invalid=0 duplicates=0 errors=0 can_upload=true'
    """
    return f"SUMMARY {render_summary_body(result)}"
