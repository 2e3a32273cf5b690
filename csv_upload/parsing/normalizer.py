from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..models.config_models import AliasCollisionPolicy, ColumnSpec

"""Header alias resolution for the upload pipeline.

Each observed header is matched case-insensitively against the configured
input_names first and the aliases second. Headers matching no column pass
through under their original name so unknown columns never block an upload.
"""

__all__ = [
    "AliasCollision",
    "HeaderMapping",
    "build_header_mapping",
    "normalize_row",
]

logger = logging.getLogger(__name__)


def _key(name: str) -> str:
    return name.strip().casefold()


@dataclass(frozen=True)
class AliasCollision:
    """Several observed headers resolved to one canonical name."""
    canonical: str
    headers: tuple[str, ...]  # in header order

    def describe(self) -> str:
        joined = ", ".join(f"'{h}'" for h in self.headers)
        return f"Columns {joined} all map to '{self.canonical}'"


@dataclass(frozen=True)
class HeaderMapping:
    header: tuple[str, ...]
    canonical: tuple[str, ...]  # canonical name per header position
    collisions: tuple[AliasCollision, ...] = field(default_factory=tuple)

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(self.canonical)


def build_header_mapping(header: Sequence[str], columns: Sequence[ColumnSpec]) -> HeaderMapping:
    """Resolve every observed header to its canonical input_name."""
    by_name: dict[str, str] = {}
    by_alias: dict[str, str] = {}
    for spec in columns:
        by_name.setdefault(_key(spec.input_name), spec.input_name)
        for alias in spec.aliases:
            by_alias.setdefault(_key(alias), spec.input_name)

    canonical: list[str] = []
    for raw in header:
        k = _key(raw)
        canonical.append(by_name.get(k) or by_alias.get(k) or raw)

    # Only configured columns can collide; repeated unknown headers pass through
    configured = set(by_name.values())
    positions: dict[str, list[int]] = {}
    for idx, name in enumerate(canonical):
        if name not in configured:
            continue
        positions.setdefault(name, []).append(idx)
    collisions = tuple(
        AliasCollision(canonical=name, headers=tuple(header[i] for i in idxs))
        for name, idxs in positions.items()
        if len(idxs) > 1
    )
    for c in collisions:
        logger.warning("alias collision: %s", c.describe())

    return HeaderMapping(header=tuple(header), canonical=tuple(canonical), collisions=collisions)


def normalize_row(
    values: Sequence[Any],
    mapping: HeaderMapping,
    policy: AliasCollisionPolicy = AliasCollisionPolicy.LAST_WINS,
) -> dict[str, Any]:
    """Build a NormalizedRow (canonical name -> value) from one record.

    With FIRST_WINS the earliest header keeps its value; LAST_WINS and ERROR
    both let the later header overwrite (ERROR is reported by the pipeline).
    """
    row: dict[str, Any] = {}
    for name, value in zip(mapping.canonical, values, strict=False):
        if name in row and policy is AliasCollisionPolicy.FIRST_WINS:
            continue
        row[name] = value
    return row
