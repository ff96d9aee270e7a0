#!/usr/bin/env python3
"""
Load gigs from a CSV file into the local SQLite DB, computing each gig's geohash.

CSV must have columns: gig_id, title, lat, lng (lat/lng may be blank)
Optional columns: city, state, gig_type, source, quality_score, pay_min, pay_max, pay_type, is_active
(Header row expected.) Rows with blank lat/lng are loaded without a geohash and
will not show up in nearby search.

Run: python scripts/load_gigs.py --csv path/to/gigs.csv
"""
import argparse
import csv
import sqlite3
import sys
from pathlib import Path

# Add repo root to path
root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root))

from jovi.data.gigs_repo import DEFAULT_QUALITY_SCORE, DEFAULT_SOURCE, init_db, insert_gig

REQUIRED_COLUMNS = ("gig_id", "title", "lat", "lng")
_FALSY = {"0", "false", "no", "n"}


def _opt_float(value: str | None) -> float | None:
    value = (value or "").strip()
    if not value:
        return None
    return float(value)


def main() -> int:
    parser = argparse.ArgumentParser(description="Load gigs CSV into SQLite")
    parser.add_argument("--csv", required=True, type=Path, help="Path to gigs CSV")
    parser.add_argument(
        "--db",
        default=root / "data" / "gigs.db",
        type=Path,
        help="Path to SQLite DB file",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Delete existing gigs before loading",
    )
    args = parser.parse_args()

    if not args.csv.exists():
        print(f"Error: CSV not found: {args.csv}", file=sys.stderr)
        return 1

    init_db(args.db)

    if args.replace:
        with sqlite3.connect(args.db) as conn:
            conn.execute("DELETE FROM gigs")
            conn.commit()

    count = skipped = 0
    with open(args.csv, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames:
            print("Error: empty CSV", file=sys.stderr)
            return 1
        # Normalize headers (strip BOM / spaces)
        fieldnames = [h.strip().lower().lstrip("\ufeff") for h in reader.fieldnames]
        missing = [c for c in REQUIRED_COLUMNS if c not in fieldnames]
        if missing:
            print(f"Error: CSV missing columns {missing}. Got: {fieldnames}", file=sys.stderr)
            return 1

        for row in reader:
            row = {k.strip().lower().lstrip("\ufeff"): v for k, v in row.items() if k is not None}
            gig_id = (row.get("gig_id") or "").strip()
            title = (row.get("title") or "").strip()
            if not gig_id or not title:
                skipped += 1
                continue
            try:
                quality_score = _opt_float(row.get("quality_score"))
                insert_gig(
                    args.db,
                    gig_id=gig_id,
                    title=title,
                    city=row.get("city") or "",
                    state=row.get("state") or "",
                    lat=_opt_float(row.get("lat")),
                    lng=_opt_float(row.get("lng")),
                    is_active=(row.get("is_active") or "1").strip().lower() not in _FALSY,
                    gig_type=(row.get("gig_type") or "").strip() or None,
                    source=(row.get("source") or "").strip() or DEFAULT_SOURCE,
                    quality_score=quality_score if quality_score is not None else DEFAULT_QUALITY_SCORE,
                    pay_min=_opt_float(row.get("pay_min")),
                    pay_max=_opt_float(row.get("pay_max")),
                    pay_type=(row.get("pay_type") or "").strip() or None,
                )
            except ValueError as e:  # includes InvalidCoordinate
                print(f"Skipping gig {gig_id}: {e}", file=sys.stderr)
                skipped += 1
                continue
            count += 1

    print(f"Loaded {count} gigs into {args.db} (skipped {skipped})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
