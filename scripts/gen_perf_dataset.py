#!/usr/bin/env python3
"""Dataset generation script for performance testing.

Generates synthetic CSV files shaped like config/upload.yml expects:
- Row 1: Header row (Email, Full Name, Age, Subscribed + extra columns)
- Row 2+: Data rows

Optional ratios inject duplicate emails and rows with invalid emails / ages so
the dedup filter and validation engine have work to do.
"""
from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import Any

import pandas as pd

BASE_HEADERS = ["Email", "Full Name", "Age", "Subscribed"]
FIRST_NAMES = ["Ada", "Grace", "Alan", "Linus", "Barbara", "Ken", "Margaret", "Dennis"]
LAST_NAMES = ["Lovelace", "Hopper", "Turing", "Torvalds", "Liskov", "Thompson", "Hamilton", "Ritchie"]


def generate_synthetic_data(
    rows: int,
    extra_cols: int = 0,
    seed: int = 42,
    duplicate_ratio: float = 0.0,
    invalid_ratio: float = 0.0,
) -> pd.DataFrame:
    """Generate a DataFrame of string cells ready to be written as CSV.

    Args:
        rows: Number of data rows to generate
        extra_cols: Number of additional free-text columns (not in the schema)
        seed: Random seed for reproducible data
        duplicate_ratio: Share of rows reusing an earlier row's email
        invalid_ratio: Share of rows with a malformed email or age

    Returns:
        DataFrame with one column per header, all values as strings
    """
    rng = random.Random(seed)
    data: dict[str, list[Any]] = {h: [] for h in BASE_HEADERS}
    for i in range(extra_cols):
        data[f"note_{i + 1}"] = []

    for j in range(rows):
        first = rng.choice(FIRST_NAMES)
        last = rng.choice(LAST_NAMES)
        email = f"{first.lower()}.{last.lower()}{j}@example.com"
        age = str(rng.randint(18, 90))

        if j > 0 and rng.random() < duplicate_ratio:
            email = data["Email"][rng.randrange(j)]
        if rng.random() < invalid_ratio:
            if rng.random() < 0.5:
                email = email.replace("@", "_at_")
            else:
                age = "unknown"

        data["Email"].append(email)
        data["Full Name"].append(f"  {first} {last} ")
        data["Age"].append(age)
        data["Subscribed"].append(rng.choice(["yes", "no", "true", "false", ""]))
        for i in range(extra_cols):
            data[f"note_{i + 1}"].append(f"note {i + 1} for row {j + 1}")

    return pd.DataFrame(data)


def create_csv_file(
    output_path: Path,
    rows: int,
    extra_cols: int = 0,
    seed: int = 42,
    duplicate_ratio: float = 0.0,
    invalid_ratio: float = 0.0,
) -> None:
    """Write a synthetic CSV file (UTF-8, header row first)."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = generate_synthetic_data(rows, extra_cols, seed, duplicate_ratio, invalid_ratio)
    df.to_csv(output_path, index=False, encoding="utf-8")

    print(f"Created CSV file: {output_path}")
    print(f"  Rows: {rows} (+ 1 header row)")
    print(f"  Columns: {len(df.columns)}")


def _ratio(value: str) -> float:
    r = float(value)
    if not 0.0 <= r <= 1.0:
        raise argparse.ArgumentTypeError(f"ratio must be between 0 and 1: {value!r}")
    return r


def main(argv: list[str] | None = None) -> int:
    """Main CLI interface for dataset generation."""
    parser = argparse.ArgumentParser(
        description="Generate synthetic CSV datasets for performance testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate default 50k rows
  %(prog)s people.csv

  # Custom size with dirty data
  %(prog)s dirty.csv --rows 10000 --duplicate-ratio 0.05 --invalid-ratio 0.02
        """,
    )
    parser.add_argument("output", type=Path, help="Output CSV file path")
    parser.add_argument("--rows", type=int, default=50_000, help="Number of data rows (default: 50,000)")
    parser.add_argument("--extra-cols", type=int, default=0, help="Additional unknown columns (default: 0)")
    parser.add_argument("--duplicate-ratio", type=_ratio, default=0.0, help="Share of duplicate emails")
    parser.add_argument("--invalid-ratio", type=_ratio, default=0.0, help="Share of invalid rows")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--dry-run", action="store_true", help="Show the plan without writing the file")

    args = parser.parse_args(argv)

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.extra_cols < 0:
        print("Error: --extra-cols must not be negative", file=sys.stderr)
        return 1

    print("Dataset generation plan:")
    print(f"  Output file: {args.output}")
    print(f"  Rows: {args.rows:,}")
    print(f"  Columns: {len(BASE_HEADERS) + args.extra_cols}")
    print(f"  Duplicate ratio: {args.duplicate_ratio}  Invalid ratio: {args.invalid_ratio}")
    print(f"  Random seed: {args.seed}")

    if args.dry_run:
        print("\n[DRY RUN] Would generate the file but not creating it.")
        return 0

    try:
        create_csv_file(
            args.output,
            args.rows,
            args.extra_cols,
            args.seed,
            args.duplicate_ratio,
            args.invalid_ratio,
        )
    except OSError as e:
        print(f"\nError generating dataset: {e}", file=sys.stderr)
        return 1
    print("\nDataset generation completed successfully!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
