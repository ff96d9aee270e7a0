#!/usr/bin/env python3
"""
Recompute stored gig geohashes from each gig's lat/lng.

Use after bulk edits to coordinates, or after changing the stored geohash
precision. Gigs without coordinates get a NULL geohash.

Run: python scripts/backfill_geohashes.py --db data/gigs.db
"""
import argparse
import logging
import sys
from pathlib import Path

# Add repo root to path
root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root))

from jovi.data.gigs_repo import backfill_geohashes


def main() -> int:
    parser = argparse.ArgumentParser(description="Backfill gig geohashes")
    parser.add_argument(
        "--db",
        default=root / "data" / "gigs.db",
        type=Path,
        help="Path to SQLite DB file",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")

    if not args.db.exists():
        print(f"Error: DB not found: {args.db}", file=sys.stderr)
        return 1

    changed = backfill_geohashes(args.db)
    print(f"Updated {changed} geohashes in {args.db}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
