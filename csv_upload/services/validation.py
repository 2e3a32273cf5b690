from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from ..models.config_models import (
    ColumnSpec,
    PassThrough,
    TransformAndValidate,
    TransformResult,
    Validate,
)
from ..models.row_data import RowData

"""Validation engine: applies column rules to every normalized row.

Per row, every configured column present in the header is evaluated in
declared order (no short-circuit, so all messages of a row are collected):

- Validate: predicate False -> blocking issue, the whole upload is rejected
- TransformAndValidate: valid=False -> row issue, only this row is dropped;
  raising -> BlockingValidationError, the whole parse is aborted
- PassThrough: raw value copied under api_name

Required-column gating is independent of row outcomes: see missing_required().
"""

__all__ = [
    "BlockingValidationError",
    "ValidationEngine",
    "ValidationIssue",
]

logger = logging.getLogger(__name__)


class BlockingValidationError(Exception):
    """Raised when a column rule aborts the parse (the rule itself raised)."""

    def __init__(self, message: str, *, row_number: int = -1, column: str | None = None) -> None:
        super().__init__(message)
        self.row_number = row_number
        self.column = column


@dataclass(frozen=True)
class ValidationIssue:
    """One validation message with enough context to be human-readable."""
    row_number: int  # -1 for file-level issues
    column: str | None
    message: str
    blocking: bool
    error_type: str


class ValidationEngine:
    """Evaluates the column rules of one upload against parsed rows."""

    def __init__(self, columns: Sequence[ColumnSpec], fields: Iterable[str]) -> None:
        self.columns = list(columns)
        self.fields = frozenset(fields)
        # Columns absent from the header are never evaluated
        self.active_columns = [c for c in self.columns if c.input_name in self.fields]

    def missing_required(self) -> list[ValidationIssue]:
        """Blocking issues for every required column absent from the header."""
        issues: list[ValidationIssue] = []
        for spec in self.columns:
            if spec.required and spec.input_name not in self.fields:
                issues.append(
                    ValidationIssue(
                        row_number=-1,
                        column=spec.input_name,
                        message=f"Missing required column '{spec.input_name}'",
                        blocking=True,
                        error_type="MISSING_COLUMN",
                    )
                )
        return issues

    def validate_row(
        self,
        row_number: int,
        values: dict[str, Any],
        raw_values: dict[str, Any] | None = None,
    ) -> tuple[RowData, list[ValidationIssue]]:
        """Validate one NormalizedRow and build its OutputRow.

        Returns:
            (RowData, issues); RowData.invalid is True when any rule rejected
            the row (blocking or not).

        Raises:
            BlockingValidationError: a rule callable raised
        """
        output: dict[str, Any] = {}
        issues: list[ValidationIssue] = []

        for spec in self.active_columns:
            value = values.get(spec.input_name)
            rule = spec.rule
            if isinstance(rule, Validate):
                if self._call(rule.predicate, value, values, row_number, spec):
                    output[spec.api_name] = value
                else:
                    issues.append(
                        ValidationIssue(
                            row_number=row_number,
                            column=spec.input_name,
                            message=f"Row {row_number}: invalid value {value!r} for column '{spec.input_name}'",
                            blocking=True,
                            error_type="VALIDATION_FAILED",
                        )
                    )
            elif isinstance(rule, TransformAndValidate):
                result = self._call(rule.function, value, values, row_number, spec)
                if not isinstance(result, TransformResult):
                    raise BlockingValidationError(
                        f"Row {row_number}, column '{spec.input_name}': transform returned "
                        f"{type(result).__name__}, expected TransformResult",
                        row_number=row_number,
                        column=spec.input_name,
                    )
                if result.valid:
                    output[spec.api_name] = result.value
                else:
                    reason = result.message or f"invalid value {value!r}"
                    issues.append(
                        ValidationIssue(
                            row_number=row_number,
                            column=spec.input_name,
                            message=f"Row {row_number}, column '{spec.input_name}': {reason}",
                            blocking=False,
                            error_type="ROW_REJECTED",
                        )
                    )
            elif isinstance(rule, PassThrough):
                output[spec.api_name] = value

        if issues:
            logger.debug("row=%d rejected issues=%d", row_number, len(issues))
        row = RowData(
            row_number=row_number,
            values=values,
            raw_values=raw_values,
            output=output,
            invalid=bool(issues),
        )
        return row, issues

    @staticmethod
    def _call(fn: Any, value: Any, values: dict[str, Any], row_number: int, spec: ColumnSpec) -> Any:
        try:
            return fn(value, values)
        except Exception as e:
            logger.error("row=%d column=%s rule raised: %s", row_number, spec.input_name, e)
            raise BlockingValidationError(
                f"Row {row_number}, column '{spec.input_name}': {e}",
                row_number=row_number,
                column=spec.input_name,
            ) from e
