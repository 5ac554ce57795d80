#!/usr/bin/env python3
"""Sample dataset generation for the import wizard.

Writes a CSV or XLSX file shaped like the default expected columns:
- Row 1: Title row (the wizard lets the user pick row 2 as header)
- Row 2: Header row (first name / last name split, age, team, active, start date)
- Row 3+: Data rows, a share of which carry dirty values
  (non-numeric ages, non-standard team names, padded names, blank rows)

Used to try the CLI by hand and to size performance checks.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

HEADER = ["First Name", "Last Name", "Email", "Age", "Department", "Active", "Start Date"]
TEAMS = ["engineering", "marketing", "sales", "support"]
DIRTY_TEAMS = ["Eng.", "mktg", "Sales Team", "helpdesk"]
FIRST_NAMES = ["alice", "bob", "carol", "dave", "erin", "frank", "grace", "heidi"]
LAST_NAMES = ["smith", "jones", "brown", "taylor", "wilson", "evans"]


def generate_sample_rows(rows: int, dirty_ratio: float = 0.1, seed: int = 42) -> list[list[str]]:
    """Generate header + data rows as text cells.

    Args:
        rows: Number of data rows
        dirty_ratio: Share of data rows (0..1) receiving one dirty value
        seed: Random seed for reproducible data

    Returns:
        Title row, header row and ``rows`` data rows
    """
    rng = np.random.default_rng(seed)
    out: list[list[str]] = [["Employee export"] + [""] * (len(HEADER) - 1), list(HEADER)]
    dirty = rng.random(rows) < dirty_ratio
    kinds = rng.integers(0, 4, rows)
    dates = pd.date_range("2020-01-01", "2024-12-31", periods=365)
    for i in range(rows):
        first = str(rng.choice(FIRST_NAMES))
        last = str(rng.choice(LAST_NAMES))
        row = [
            first,
            last,
            f"{first}.{last}{i}@example.com",
            str(int(rng.integers(18, 70))),
            str(rng.choice(TEAMS)),
            str(rng.choice(["yes", "no", "1", "0"])),
            pd.Timestamp(rng.choice(dates)).strftime("%Y-%m-%d"),
        ]
        if dirty[i]:
            kind = int(kinds[i])
            if kind == 0:
                row[3] = "unknown"
            elif kind == 1:
                row[4] = str(rng.choice(DIRTY_TEAMS))
            elif kind == 2:
                row[0] = f"  {first.upper()}  "
            else:
                row = [""] * len(HEADER)
        out.append(row)
    return out


def write_dataset(output_path: Path, rows: list[list[str]]) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(rows)
    if output_path.suffix == ".xlsx":
        with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    else:
        df.to_csv(output_path, header=False, index=False)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate sample CSV / XLSX datasets for the import wizard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/people.csv
  %(prog)s data/people.xlsx --rows 5000 --dirty-ratio 0.25
        """,
    )
    parser.add_argument("output", type=Path, help="Output path (.csv or .xlsx)")
    parser.add_argument("--rows", type=int, default=1_000, help="Number of data rows (default: 1,000)")
    parser.add_argument("--dirty-ratio", type=float, default=0.1, help="Share of dirty rows 0..1 (default: 0.1)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.dirty_ratio <= 1:
        print("Error: --dirty-ratio must be within 0..1", file=sys.stderr)
        return 1
    if args.output.suffix not in (".csv", ".xlsx"):
        print("Error: output must end with .csv or .xlsx", file=sys.stderr)
        return 1

    rows = generate_sample_rows(args.rows, args.dirty_ratio, args.seed)
    write_dataset(args.output, rows)
    print(f"Created {args.output}: {args.rows:,} data rows (+ title & header), dirty_ratio={args.dirty_ratio}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
