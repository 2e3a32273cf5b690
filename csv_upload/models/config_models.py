from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Column schema & upload option dataclasses for the CSV upload pipeline.

This module defines the declarative description of the columns a CSV upload
expects (ColumnSpec) and the options of a single parse pass (UploadOptions).
The loader in csv_upload/config/loader.py builds these from YAML; library
callers may construct them directly with their own callables.

Column behaviour is a tagged variant:
- PassThrough: value copied as-is under api_name
- Validate: predicate(value, row) -> bool, failure blocks the whole upload
- TransformAndValidate: function(value, row) -> TransformResult, invalid rows
  are filtered out; raising aborts the whole parse
"""

__all__ = [
    "AliasCollisionPolicy",
    "ColumnRule",
    "ColumnSpec",
    "ColumnSpecError",
    "PassThrough",
    "TransformAndValidate",
    "TransformResult",
    "UploadOptions",
    "Validate",
]


class ColumnSpecError(ValueError):
    """Raised when a column schema or upload option is inconsistent."""


@dataclass(frozen=True)
class TransformResult:
    """Outcome of a transform-and-validate call for one cell."""
    valid: bool
    value: Any = None
    message: str | None = None  # Optional user-facing reason when valid=False


Predicate = Callable[[Any, dict[str, Any]], bool]
Transform = Callable[[Any, dict[str, Any]], TransformResult]


@dataclass(frozen=True)
class PassThrough:
    """Accept the raw value unchanged."""


@dataclass(frozen=True)
class Validate:
    predicate: Predicate
    name: str | None = None  # Registry name when built from config (for logs)


@dataclass(frozen=True)
class TransformAndValidate:
    function: Transform
    name: str | None = None


ColumnRule = PassThrough | Validate | TransformAndValidate


@dataclass(frozen=True)
class ColumnSpec:
    """Declarative rule set describing one expected CSV column.

    input_name is the canonical key a column is addressed by after alias
    resolution; api_name is the key the final value is stored under.
    """
    input_name: str
    api_name: str
    description: str = ""
    aliases: frozenset[str] = frozenset()
    required: bool = False
    rule: ColumnRule = field(default_factory=PassThrough)

    def __post_init__(self) -> None:
        if not self.input_name or not self.input_name.strip():
            raise ColumnSpecError("column input_name must be a non-empty string")
        if not self.api_name or not self.api_name.strip():
            raise ColumnSpecError(f"column '{self.input_name}' needs a non-empty api_name")
        if not isinstance(self.aliases, frozenset):
            object.__setattr__(self, "aliases", frozenset(self.aliases))
        if not isinstance(self.rule, (PassThrough, Validate, TransformAndValidate)):
            raise ColumnSpecError(
                f"column '{self.input_name}' has unsupported rule {type(self.rule).__name__}"
            )

    @classmethod
    def build(
        cls,
        input_name: str,
        api_name: str | None = None,
        *,
        description: str = "",
        aliases: Iterable[str] = (),
        required: bool = False,
        validate: Predicate | None = None,
        transform_and_validate: Transform | None = None,
    ) -> ColumnSpec:
        """Build a ColumnSpec from plain callables.

        At most one of validate / transform_and_validate may be given; with
        neither the column is a pass-through. api_name defaults to input_name.
        """
        if validate is not None and transform_and_validate is not None:
            raise ColumnSpecError(
                f"column '{input_name}' sets both validate and transform_and_validate"
            )
        rule: ColumnRule
        if validate is not None:
            rule = Validate(validate)
        elif transform_and_validate is not None:
            rule = TransformAndValidate(transform_and_validate)
        else:
            rule = PassThrough()
        return cls(
            input_name=input_name,
            api_name=api_name or input_name,
            description=description,
            aliases=frozenset(aliases),
            required=required,
            rule=rule,
        )


class AliasCollisionPolicy(Enum):
    """What to do when two headers resolve to the same canonical input_name.

    - LAST_WINS: the later header in file order overwrites the earlier value
    - FIRST_WINS: the earlier header keeps its value
    - ERROR: the collision is reported as a blocking error
    """
    LAST_WINS = "last_wins"
    FIRST_WINS = "first_wins"
    ERROR = "error"


@dataclass(frozen=True)
class UploadOptions:
    """Options for one parse pass (maxRows / columnConfig / dedupeOn)."""
    columns: tuple[ColumnSpec, ...]
    max_rows: int | None = None
    dedupe_on: str | None = None  # input_name of the dedup key column
    alias_collision: AliasCollisionPolicy = AliasCollisionPolicy.LAST_WINS

    def __post_init__(self) -> None:
        if not isinstance(self.columns, tuple):
            object.__setattr__(self, "columns", tuple(self.columns))
        if self.max_rows is not None:
            if isinstance(self.max_rows, bool) or not isinstance(self.max_rows, int) or self.max_rows < 1:
                raise ColumnSpecError(f"max_rows must be a positive integer, got {self.max_rows!r}")
        seen: set[str] = set()
        for spec in self.columns:
            key = spec.input_name.strip().casefold()
            if key in seen:
                raise ColumnSpecError(f"duplicate column input_name: '{spec.input_name}'")
            seen.add(key)
        if self.dedupe_on is not None and self.dedupe_on not in self.input_names:
            raise ColumnSpecError(
                f"dedupe_on '{self.dedupe_on}' is not a configured column input_name"
            )

    @property
    def input_names(self) -> list[str]:
        return [c.input_name for c in self.columns]

    @property
    def required_columns(self) -> list[ColumnSpec]:
        return [c for c in self.columns if c.required]

    @property
    def optional_columns(self) -> list[ColumnSpec]:
        return [c for c in self.columns if not c.required]
