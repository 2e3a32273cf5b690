"""Domain models for the CSV upload pipeline.

This package contains the dataclasses shared by the parser, the validation
services and the upload session.
"""

from .config_models import (
    AliasCollisionPolicy,
    ColumnSpec,
    ColumnSpecError,
    PassThrough,
    TransformAndValidate,
    TransformResult,
    UploadOptions,
    Validate,
)
from .error_record import ErrorRecord
from .parse_result import ParseResult, ValidationStats
from .row_data import RowData
from .session_state import SessionState

__all__ = [
    # Column schema
    "AliasCollisionPolicy",
    "ColumnSpec",
    "ColumnSpecError",
    "PassThrough",
    "TransformAndValidate",
    "TransformResult",
    "UploadOptions",
    "Validate",
    # Pipeline results
    "ErrorRecord",
    "ParseResult",
    "RowData",
    "ValidationStats",
    # Session
    "SessionState",
]
