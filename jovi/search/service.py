"""
Proximity search: fan out one geohash range scan per planned cell, merge and
dedupe by record identity, then exact-filter by haversine distance.

Failure policy for per-cell queries:
- "degrade" (default): log and count the failed cell, return results from
  the cells that succeeded. If every cell fails, raise StoreQueryFailure.
- "fail_fast": the first failed cell fails the whole search.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Generic, Protocol, Sequence, TypeVar

from jovi.exceptions import InvalidRadius, StoreQueryFailure
from jovi.geo.distance import filter_by_distance
from jovi.geo.models import Coordinate, ScoredResult, validate_lat_lng
from jovi.monitoring.metrics import record_search
from jovi.search import planner
from jovi.search.planner import CellRange, QueryPlan

logger = logging.getLogger(__name__)

FAILURE_POLICIES = ("degrade", "fail_fast")
DEFAULT_CELL_TIMEOUT_SECONDS = 5.0


class SearchableRecord(Protocol):
    @property
    def record_id(self) -> str: ...

    @property
    def geohash(self) -> str | None: ...

    @property
    def coordinate(self) -> Coordinate | None: ...


R = TypeVar("R", bound=SearchableRecord)


class RecordStore(Protocol[R]):
    async def range_query(self, cell_range: CellRange, *, active_only: bool = True) -> Sequence[R]: ...


@dataclass
class SearchReport(Generic[R]):
    results: list[ScoredResult[R]]
    plan: QueryPlan
    failed_cells: list[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed_cells)


def merge_unique(batches: Sequence[Sequence[R]]) -> list[R]:
    """Flatten batches keeping the first record seen for each record_id."""
    seen: dict[str, R] = {}
    for batch in batches:
        for record in batch:
            if record.record_id not in seen:
                seen[record.record_id] = record
    return list(seen.values())


class ProximitySearchService(Generic[R]):
    """Searches a RecordStore for records within a radius of a point."""

    def __init__(
        self,
        store: RecordStore[R],
        *,
        cell_timeout_seconds: float = DEFAULT_CELL_TIMEOUT_SECONDS,
        failure_policy: str = "degrade",
        ensure_coverage: bool = False,
    ):
        if failure_policy not in FAILURE_POLICIES:
            raise ValueError(f"failure_policy must be one of {FAILURE_POLICIES}, got {failure_policy!r}")
        if cell_timeout_seconds <= 0:
            raise ValueError("cell_timeout_seconds must be > 0")
        self._store = store
        self._cell_timeout = cell_timeout_seconds
        self._failure_policy = failure_policy
        self._ensure_coverage = ensure_coverage

    async def search_nearby(
        self, center: Coordinate, radius_miles: float, limit: int | None = None
    ) -> list[ScoredResult[R]]:
        """Records within radius_miles of center, nearest first."""
        report = await self.search(center, radius_miles, limit=limit)
        return report.results

    async def search(
        self, center: Coordinate, radius_miles: float, limit: int | None = None
    ) -> SearchReport[R]:
        validate_lat_lng(center.lat, center.lng)
        if not radius_miles > 0:
            raise InvalidRadius(radius_miles)

        query_plan = planner.plan(center, radius_miles, ensure_coverage=self._ensure_coverage)
        ranges = query_plan.ranges()
        if self._failure_policy == "fail_fast":
            try:
                batches = await self._gather_fail_fast(ranges)
            except StoreQueryFailure as failure:
                record_search(len(ranges), 1)
                logger.warning("telemetry search_cell_failed cell=%s error=%s", failure.cell, str(failure))
                raise
            failed: list[StoreQueryFailure] = []
            record_search(len(ranges), 0)
        else:
            batches, failed = await self._gather_degrade(ranges)
            record_search(len(ranges), len(failed))
            for failure in failed:
                logger.warning("telemetry search_cell_failed cell=%s error=%s", failure.cell, str(failure))
            if failed and len(failed) == len(ranges):
                raise failed[0]

        candidates = merge_unique(batches)
        results = filter_by_distance(candidates, center, radius_miles, limit=limit)
        logger.info(
            "telemetry search_nearby precision=%s cells=%s failed=%s candidates=%s results=%s",
            query_plan.precision,
            len(ranges),
            len(failed),
            len(candidates),
            len(results),
        )
        return SearchReport(
            results=results,
            plan=query_plan,
            failed_cells=[f.cell for f in failed],
        )

    async def _gather_fail_fast(self, ranges: list[CellRange]) -> list[Sequence[R]]:
        tasks = [asyncio.ensure_future(self._query_cell(r)) for r in ranges]
        try:
            return list(await asyncio.gather(*tasks))
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

    async def _gather_degrade(
        self, ranges: list[CellRange]
    ) -> tuple[list[Sequence[R]], list[StoreQueryFailure]]:
        outcomes = await asyncio.gather(
            *(self._query_cell(r) for r in ranges),
            return_exceptions=True,
        )
        batches: list[Sequence[R]] = []
        failed: list[StoreQueryFailure] = []
        for outcome in outcomes:
            if isinstance(outcome, StoreQueryFailure):
                failed.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                batches.append(outcome)
        return batches, failed

    async def _query_cell(self, cell_range: CellRange) -> Sequence[R]:
        try:
            return await asyncio.wait_for(
                self._store.range_query(cell_range, active_only=True),
                timeout=self._cell_timeout,
            )
        except asyncio.TimeoutError as e:
            raise StoreQueryFailure(cell_range.cell, f"timed out after {self._cell_timeout}s") from e
        except StoreQueryFailure:
            raise
        except Exception as e:
            raise StoreQueryFailure(cell_range.cell, str(e)) from e
