#!/usr/bin/env python3
"""Dataset generation script for load testing the importer.

Generates a synthetic upload file (.xlsx or .csv) for one import kind:
- Row 1: Header row using the template column titles
- Row 2+: Data rows, a share of which repeat an earlier identity (duplicates)
  and a share of which break a validation rule (invalid rows)

Run the result through `python -m bulkimport.cli --kind <kind> --file <output>` to
observe pacing (one pause every `pace_every` rows) and duplicate handling at scale.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

KINDS = ("team_member", "customer", "service", "material")

ROLES = ["admin", "supervisor", "field_tech", "Technician", "manager"]
SERVICE_CATEGORIES = ["Inspection", "Treatment", "Exclusion", "Sanitation", "Monitoring"]
MATERIAL_CATEGORIES = ["Chemicals", "Baits", "Traps", "Equipment", "PPE"]
UNITS = ["gallon", "oz", "lb", "each", "case"]
STATES = ["CA", "TX", "FL", "NY", "WA", "AZ"]


def _identities(rows: int, duplicate_ratio: float, rng: np.random.Generator) -> list[int]:
    """Row -> identity number. Duplicated rows reuse an identity of an earlier row."""
    ids = list(range(rows))
    dup_rows = rng.random(rows) < duplicate_ratio
    for i in range(1, rows):
        if dup_rows[i]:
            ids[i] = int(rng.integers(0, i))
    return ids


def generate_rows(
    kind: str, rows: int, duplicate_ratio: float = 0.1, invalid_ratio: float = 0.05, seed: int = 42
) -> pd.DataFrame:
    """Generate a DataFrame with template headers for the given kind.

    Args:
        kind: One of KINDS
        rows: Number of data rows
        duplicate_ratio: Share of rows repeating an earlier identity
        invalid_ratio: Share of rows with a missing required field
        seed: Random seed for reproducible data

    Returns:
        DataFrame ready to be written as an upload file
    """
    rng = np.random.default_rng(seed)
    ids = _identities(rows, duplicate_ratio, rng)
    invalid = rng.random(rows) < invalid_ratio

    if kind == "team_member":
        df = pd.DataFrame(
            {
                "Email": [f"tech{n:06d}@example.com" for n in ids],
                "Name": [f"Technician {n}" for n in ids],
                "Role": rng.choice(ROLES, rows).tolist(),
                "Phone": [f"555-{n % 10000:04d}" for n in ids],
            }
        )
        df.loc[invalid, "Email"] = "not-an-email"
    elif kind == "customer":
        df = pd.DataFrame(
            {
                "Customer Name": [f"Customer {n}" for n in ids],
                "Email": [f"customer{n:06d}@example.com" for n in ids],
                "Phone": [f"555-{(n * 7) % 10000:04d}" for n in ids],
                "Address": [f"{100 + n} Main St" for n in ids],
                "City": ["Springfield"] * rows,
                "State": rng.choice(STATES, rows).tolist(),
                "ZIP Code": [f"{10000 + n % 89999:05d}" for n in ids],
                "Email Consent": rng.choice(["true", "false"], rows).tolist(),
            }
        )
        df.loc[invalid, "Customer Name"] = ""
    elif kind == "service":
        df = pd.DataFrame(
            {
                "Service Name": [f"Service {n}" for n in ids],
                "Category": rng.choice(SERVICE_CATEGORIES, rows).tolist(),
                "Description": [f"Synthetic service {n}" for n in ids],
                "Base Price": np.round(rng.uniform(50, 500, rows), 2).tolist(),
            }
        )
        df.loc[invalid, "Service Name"] = ""
    elif kind == "material":
        df = pd.DataFrame(
            {
                "Material Name": [f"Material {n}" for n in ids],
                "Category": rng.choice(MATERIAL_CATEGORIES, rows).tolist(),
                "Unit": rng.choice(UNITS, rows).tolist(),
                "Cost Per Unit": np.round(rng.uniform(1, 200, rows), 2).tolist(),
                "Retail Price": np.round(rng.uniform(5, 400, rows), 2).tolist(),
                "Quantity In Stock": rng.integers(0, 500, rows).tolist(),
                "Active": rng.choice(["true", "false"], rows).tolist(),
            }
        )
        df["Retail Price"] = df["Retail Price"].astype(object)
        df.loc[invalid, "Retail Price"] = "n/a"
    else:
        raise ValueError(f"unknown kind: {kind}")
    return df


def write_dataset(df: pd.DataFrame, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix.lower() == ".csv":
        df.to_csv(output_path, index=False)
    else:
        df.to_excel(output_path, index=False, engine="openpyxl")


def main() -> int:
    """Main CLI interface for dataset generation."""
    parser = argparse.ArgumentParser(
        description="Generate synthetic upload files for load testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s customers.xlsx --kind customer --rows 5000
  %(prog)s materials.csv --kind material --rows 2000 --duplicate-ratio 0.3
        """,
    )
    parser.add_argument("output", type=Path, help="Output file path (.xlsx or .csv)")
    parser.add_argument("--kind", choices=KINDS, required=True, help="Import kind")
    parser.add_argument("--rows", type=int, default=1_000, help="Number of data rows (default: 1,000)")
    parser.add_argument("--duplicate-ratio", type=float, default=0.1, help="Share of duplicate rows (default: 0.1)")
    parser.add_argument("--invalid-ratio", type=float, default=0.05, help="Share of invalid rows (default: 0.05)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--dry-run", action="store_true", help="Show the plan without creating the file")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    for name in ("duplicate_ratio", "invalid_ratio"):
        value = getattr(args, name)
        if not 0 <= value <= 1:
            print(f"Error: --{name.replace('_', '-')} must be between 0 and 1", file=sys.stderr)
            return 1

    print("Dataset generation plan:")
    print(f"  Output file: {args.output}")
    print(f"  Kind: {args.kind}")
    print(f"  Rows: {args.rows:,} (+ 1 header row)")
    print(f"  Duplicate ratio: {args.duplicate_ratio}")
    print(f"  Invalid ratio: {args.invalid_ratio}")
    print(f"  Random seed: {args.seed}")

    if args.dry_run:
        print("\n[DRY RUN] Would generate the file but not creating it.")
        return 0

    try:
        df = generate_rows(args.kind, args.rows, args.duplicate_ratio, args.invalid_ratio, args.seed)
        write_dataset(df, args.output)
    except (OSError, ValueError) as e:
        print(f"\nError generating dataset: {e}", file=sys.stderr)
        return 1
    print(f"\nCreated {args.output} ({len(df):,} rows)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
