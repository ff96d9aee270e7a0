"""Pytest configuration and fixtures."""
import asyncio
import sys
from pathlib import Path

import pytest

# Ensure repo root is on path when running pytest from any directory
root = Path(__file__).resolve().parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from jovi.data.gigs_repo import GigRecord, geohash_for, init_db, insert_gig  # noqa: E402

# Downtown Los Angeles
LA = (34.0522, -118.2437)


def make_gig(gig_id: str, lat: float | None, lng: float | None, is_active: bool = True, title: str = "") -> GigRecord:
    return GigRecord(
        gig_id=gig_id,
        title=title or f"Gig {gig_id}",
        city="Los Angeles",
        state="CA",
        lat=lat,
        lng=lng,
        geohash=geohash_for(lat, lng),
        is_active=is_active,
    )


class FakeGigStore:
    """In-memory store applying the same predicate as the SQLite store."""

    def __init__(self, records: list[GigRecord], delay: float = 0.0):
        self.records = records
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def range_query(self, cell_range, *, active_only=True):
        self.calls.append(cell_range.cell)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return [
                r for r in self.records
                if r.geohash is not None
                and cell_range.start <= r.geohash <= cell_range.end
                and (r.is_active or not active_only)
            ]
        finally:
            self.in_flight -= 1


class FlakyGigStore(FakeGigStore):
    """Fails (or hangs) for the given cells."""

    def __init__(self, records, fail_cells=(), hang_cells=()):
        super().__init__(records)
        self.fail_cells = set(fail_cells)
        self.hang_cells = set(hang_cells)

    async def range_query(self, cell_range, *, active_only=True):
        if cell_range.cell in self.fail_cells:
            self.calls.append(cell_range.cell)
            raise ConnectionError("store unavailable")
        if cell_range.cell in self.hang_cells:
            self.calls.append(cell_range.cell)
            await asyncio.sleep(10)
        return await super().range_query(cell_range, active_only=active_only)


class EchoGigStore(FakeGigStore):
    """Returns every record for every cell, as overlapping scans would."""

    async def range_query(self, cell_range, *, active_only=True):
        self.calls.append(cell_range.cell)
        return list(self.records)


@pytest.fixture
def la_gigs() -> list[GigRecord]:
    return [
        make_gig("near", 34.0530, -118.2440, title="Salon Assistant - DTLA"),
        make_gig("mid", 34.0736, -118.2400, title="Booth Rental - Echo Park"),
        make_gig("far", 34.5, -118.2, title="Nail Tech - Palmdale"),
        make_gig("inactive", 34.0525, -118.2435, is_active=False, title="Expired Lash Gig"),
        make_gig("nocoord", None, None, title="Remote Makeup Consult"),
    ]


@pytest.fixture
def gigs_db(tmp_path, la_gigs):
    """Temporary gigs DB seeded with the LA gigs."""
    db = tmp_path / "gigs.db"
    init_db(db)
    for g in la_gigs:
        insert_gig(
            db,
            gig_id=g.gig_id,
            title=g.title,
            city=g.city,
            state=g.state,
            lat=g.lat,
            lng=g.lng,
            is_active=g.is_active,
            gig_type="part-time",
            pay_min=20.0,
            pay_max=35.0,
            pay_type="hourly",
        )
    return db
