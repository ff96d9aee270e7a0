"""
Gig records in SQLite, with geohash prefix range scans for proximity search.

Each gig's geohash is computed from its own coordinate when the gig is written
and is only read by the search path.
"""
import asyncio
import logging
import sqlite3
import uuid
from pathlib import Path
from typing import NamedTuple

from jovi.exceptions import InvalidCoordinate
from jovi.geo import geohash
from jovi.geo.models import Coordinate, validate_lat_lng
from jovi.search.planner import CellRange

logger = logging.getLogger(__name__)

DEFAULT_QUALITY_SCORE = 5.0
DEFAULT_SOURCE = "user-generated"

_COLUMNS = (
    "gig_id, title, city, state, lat, lng, geohash, is_active, "
    "gig_type, source, quality_score, pay_min, pay_max, pay_type"
)


class GigRecord(NamedTuple):
    gig_id: str
    title: str
    city: str
    state: str
    lat: float | None
    lng: float | None
    geohash: str | None
    is_active: bool = True
    gig_type: str | None = None
    source: str = DEFAULT_SOURCE
    quality_score: float = DEFAULT_QUALITY_SCORE
    pay_min: float | None = None
    pay_max: float | None = None
    pay_type: str | None = None

    @property
    def record_id(self) -> str:
        return self.gig_id

    @property
    def coordinate(self) -> Coordinate | None:
        if self.lat is None or self.lng is None:
            return None
        return Coordinate(self.lat, self.lng)


def _row_to_record(r: sqlite3.Row) -> GigRecord:
    return GigRecord(
        gig_id=r["gig_id"],
        title=r["title"],
        city=r["city"] or "",
        state=r["state"] or "",
        lat=r["lat"],
        lng=r["lng"],
        geohash=r["geohash"],
        is_active=bool(r["is_active"]),
        gig_type=r["gig_type"],
        source=r["source"] or DEFAULT_SOURCE,
        quality_score=r["quality_score"] if r["quality_score"] is not None else DEFAULT_QUALITY_SCORE,
        pay_min=r["pay_min"],
        pay_max=r["pay_max"],
        pay_type=r["pay_type"],
    )


def init_db(db_path: str | Path) -> None:
    """Create gigs table and geohash index if they do not exist."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS gigs (
                gig_id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                city TEXT,
                state TEXT,
                lat REAL,
                lng REAL,
                geohash TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                gig_type TEXT,
                source TEXT NOT NULL DEFAULT 'user-generated',
                quality_score REAL NOT NULL DEFAULT 5,
                pay_min REAL,
                pay_max REAL,
                pay_type TEXT
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_gigs_active_geohash ON gigs(is_active, geohash)"
        )
        conn.commit()


def geohash_for(lat: float | None, lng: float | None) -> str | None:
    """Geohash stored on a gig; None when the gig has no coordinate."""
    if lat is None or lng is None:
        return None
    return geohash.encode(lat, lng, geohash.RECORD_GEOHASH_PRECISION)


def insert_gig(
    db_path: str | Path,
    *,
    title: str,
    city: str = "",
    state: str = "",
    lat: float | None = None,
    lng: float | None = None,
    gig_id: str | None = None,
    is_active: bool = True,
    gig_type: str | None = None,
    source: str = DEFAULT_SOURCE,
    quality_score: float = DEFAULT_QUALITY_SCORE,
    pay_min: float | None = None,
    pay_max: float | None = None,
    pay_type: str | None = None,
) -> GigRecord:
    """
    Insert or replace a gig, computing its geohash from (lat, lng).
    Raises InvalidCoordinate for out-of-range coordinates and ValueError when
    only one of lat/lng is given.
    """
    if not Path(db_path).exists():
        raise ValueError("Database not initialized. Run init_db first.")
    if (lat is None) != (lng is None):
        raise ValueError("Provide both lat and lng, or neither.")
    if lat is not None:
        validate_lat_lng(lat, lng)
    if not title or not title.strip():
        raise ValueError("title is required.")
    record = GigRecord(
        gig_id=gig_id or str(uuid.uuid4()),
        title=title.strip(),
        city=city.strip(),
        state=state.strip(),
        lat=lat,
        lng=lng,
        geohash=geohash_for(lat, lng),
        is_active=is_active,
        gig_type=gig_type,
        source=source,
        quality_score=quality_score,
        pay_min=pay_min,
        pay_max=pay_max,
        pay_type=pay_type,
    )
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            f"INSERT OR REPLACE INTO gigs ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.gig_id, record.title, record.city, record.state,
                record.lat, record.lng, record.geohash, int(record.is_active),
                record.gig_type, record.source, record.quality_score,
                record.pay_min, record.pay_max, record.pay_type,
            ),
        )
        conn.commit()
    return record


def get_gig(db_path: str | Path, gig_id: str) -> GigRecord | None:
    db_path = Path(db_path)
    if not db_path.exists():
        return None
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        r = conn.execute(f"SELECT {_COLUMNS} FROM gigs WHERE gig_id = ?", (gig_id,)).fetchone()
        return _row_to_record(r) if r is not None else None


def set_gig_active(db_path: str | Path, gig_id: str, is_active: bool) -> bool:
    """Activate or deactivate a gig. Returns True if a row was updated."""
    with sqlite3.connect(db_path) as conn:
        cur = conn.execute(
            "UPDATE gigs SET is_active = ? WHERE gig_id = ?",
            (int(is_active), gig_id),
        )
        conn.commit()
        return cur.rowcount > 0


def backfill_geohashes(db_path: str | Path) -> int:
    """
    Recompute geohashes that are missing or stale for the stored coordinates.
    Gigs without coordinates get a NULL geohash. Returns the number of rows changed.
    """
    changed = 0
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        rows = conn.execute("SELECT gig_id, lat, lng, geohash FROM gigs").fetchall()
        for r in rows:
            try:
                expected = geohash_for(r["lat"], r["lng"])
            except InvalidCoordinate as e:
                logger.warning("telemetry backfill_bad_coordinate gig_id=%s error=%s", r["gig_id"], str(e))
                continue
            if r["geohash"] != expected:
                conn.execute("UPDATE gigs SET geohash = ? WHERE gig_id = ?", (expected, r["gig_id"]))
                changed += 1
        conn.commit()
    return changed


def range_query(
    db_path: str | Path,
    start: str,
    end: str,
    active_only: bool = True,
) -> list[GigRecord]:
    """Return gigs whose geohash lies in [start, end], ordered by geohash."""
    db_path = Path(db_path)
    if not db_path.exists():
        logger.warning("telemetry gigs_db_missing path=%s", db_path)
        return []
    sql = f"SELECT {_COLUMNS} FROM gigs WHERE geohash >= ? AND geohash <= ?"
    if active_only:
        sql = f"SELECT {_COLUMNS} FROM gigs WHERE is_active = 1 AND geohash >= ? AND geohash <= ?"
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        rows = conn.execute(sql + " ORDER BY geohash", (start, end)).fetchall()
    return [_row_to_record(r) for r in rows]


class SQLiteGigStore:
    """Async record store over the gigs table; each query runs in a worker thread."""

    def __init__(self, db_path: str | Path):
        self._db_path = Path(db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def range_query(self, cell_range: CellRange, *, active_only: bool = True) -> list[GigRecord]:
        return await asyncio.to_thread(
            range_query, self._db_path, cell_range.start, cell_range.end, active_only
        )
