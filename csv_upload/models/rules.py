from __future__ import annotations

import re
from datetime import date
from typing import Any

from .config_models import (
    ColumnRule,
    ColumnSpecError,
    PassThrough,
    TransformAndValidate,
    TransformResult,
    Validate,
)

"""Named column rules usable from the YAML config.

Config files cannot carry callables, so a column refers to a rule by name:

    validate: email      -> Validate(predicate)
    transform: integer   -> TransformAndValidate(function)

Validators return a bool and a False result blocks the upload. Transforms
treat a blank cell as valid (value None) so optional columns may be left
empty; unparseable input is reported as valid=False with a message.
"""

__all__ = [
    "TRANSFORMS",
    "VALIDATORS",
    "resolve_rule",
]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_TRUE_STRINGS = {"true", "t", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "f", "no", "n", "0"}


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


# --- validators -------------------------------------------------------------

def non_empty(value: Any, row: dict[str, Any]) -> bool:
    return _text(value) != ""


def is_email(value: Any, row: dict[str, Any]) -> bool:
    return bool(_EMAIL_RE.match(_text(value)))


def is_integer(value: Any, row: dict[str, Any]) -> bool:
    try:
        int(_text(value))
    except ValueError:
        return False
    return True


def is_number(value: Any, row: dict[str, Any]) -> bool:
    try:
        float(_text(value))
    except ValueError:
        return False
    return True


def is_iso_date(value: Any, row: dict[str, Any]) -> bool:
    try:
        date.fromisoformat(_text(value))
    except ValueError:
        return False
    return True


# --- transforms -------------------------------------------------------------

def strip(value: Any, row: dict[str, Any]) -> TransformResult:
    return TransformResult(valid=True, value=_text(value))


def lower(value: Any, row: dict[str, Any]) -> TransformResult:
    return TransformResult(valid=True, value=_text(value).lower())


def upper(value: Any, row: dict[str, Any]) -> TransformResult:
    return TransformResult(valid=True, value=_text(value).upper())


def to_integer(value: Any, row: dict[str, Any]) -> TransformResult:
    text = _text(value)
    if text == "":
        return TransformResult(valid=True, value=None)
    try:
        return TransformResult(valid=True, value=int(text))
    except ValueError:
        return TransformResult(valid=False, value=value, message=f"'{text}' is not an integer")


def to_number(value: Any, row: dict[str, Any]) -> TransformResult:
    text = _text(value)
    if text == "":
        return TransformResult(valid=True, value=None)
    try:
        return TransformResult(valid=True, value=float(text))
    except ValueError:
        return TransformResult(valid=False, value=value, message=f"'{text}' is not a number")


def to_boolean(value: Any, row: dict[str, Any]) -> TransformResult:
    text = _text(value).lower()
    if text == "":
        return TransformResult(valid=True, value=None)
    if text in _TRUE_STRINGS:
        return TransformResult(valid=True, value=True)
    if text in _FALSE_STRINGS:
        return TransformResult(valid=True, value=False)
    return TransformResult(valid=False, value=value, message=f"'{_text(value)}' is not a boolean")


def to_iso_date(value: Any, row: dict[str, Any]) -> TransformResult:
    text = _text(value)
    if text == "":
        return TransformResult(valid=True, value=None)
    try:
        return TransformResult(valid=True, value=date.fromisoformat(text).isoformat())
    except ValueError:
        return TransformResult(valid=False, value=value, message=f"'{text}' is not a YYYY-MM-DD date")


VALIDATORS = {
    "non_empty": non_empty,
    "email": is_email,
    "integer": is_integer,
    "number": is_number,
    "iso_date": is_iso_date,
}

TRANSFORMS = {
    "strip": strip,
    "lower": lower,
    "upper": upper,
    "integer": to_integer,
    "number": to_number,
    "boolean": to_boolean,
    "iso_date": to_iso_date,
}


def resolve_rule(validate: str | None = None, transform: str | None = None) -> ColumnRule:
    """Translate config rule names into a ColumnRule.

    Raises:
        ColumnSpecError: both names given, or a name is not registered
    """
    if validate and transform:
        raise ColumnSpecError("a column may set either 'validate' or 'transform', not both")
    if validate:
        try:
            return Validate(VALIDATORS[validate], name=validate)
        except KeyError:
            raise ColumnSpecError(
                f"unknown validator '{validate}' (known: {sorted(VALIDATORS)})"
            ) from None
    if transform:
        try:
            return TransformAndValidate(TRANSFORMS[transform], name=transform)
        except KeyError:
            raise ColumnSpecError(
                f"unknown transform '{transform}' (known: {sorted(TRANSFORMS)})"
            ) from None
    return PassThrough()
