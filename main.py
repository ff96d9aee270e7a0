import logging
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from jovi.data.gigs_repo import GigRecord, SQLiteGigStore
from jovi.exceptions import InvalidCoordinate, InvalidRadius, StoreQueryFailure
from jovi.geo import geohash
from jovi.geo.models import Coordinate, make_coordinate
from jovi.middleware import RequestLoggingMiddleware
from jovi.monitoring import get_metrics
from jovi.search.models import GeohashResponse, GigInfo, NearbyGigsResponse
from jovi.search.service import ProximitySearchService
from settings import get_settings

settings = get_settings()
REPO_ROOT = Path(__file__).resolve().parent
GIGS_DB = REPO_ROOT / settings.gigs_db_path

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"])

RADIUS_MILES_MAX = 1000.0
LIMIT_MIN, LIMIT_MAX = 1, 100
PRECISION_MIN, PRECISION_MAX = 1, 12


def _coordinate_or_400(lat: float, lng: float) -> Coordinate:
    try:
        return make_coordinate(lat, lng)
    except InvalidCoordinate as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


app = FastAPI(title=settings.app_name, debug=settings.debug)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    """JSON 500 for anything the routes did not translate; HTTP and validation errors pass through."""
    from fastapi.exceptions import RequestValidationError
    if isinstance(exc, (HTTPException, RequestValidationError)):
        raise exc
    logger.exception("telemetry unhandled_exception path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again later."},
    )


# Order: last added = innermost. So RequestLogging runs first (outermost), then CORS.
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_search_service() -> ProximitySearchService[GigRecord]:
    """Search service over the gigs DB. Tests override this via app.dependency_overrides."""
    return ProximitySearchService(
        SQLiteGigStore(GIGS_DB),
        cell_timeout_seconds=settings.search_cell_timeout_seconds,
        failure_policy=settings.search_failure_policy,
        ensure_coverage=settings.search_ensure_coverage,
    )


@app.get("/favicon.ico", include_in_schema=False)
@limiter.exempt
def favicon(request: Request):
    """Return 204 so browser favicon requests don't log 404."""
    return Response(status_code=204)


@app.get("/health")
@limiter.exempt
def health(request: Request):
    logger.info("telemetry route=health")
    return {"status": "ok"}


@app.get("/metrics")
@limiter.exempt
def metrics(request: Request):
    """Request and search counters (uptime, cells queried, cell failures)."""
    return get_metrics()


@app.get("/gigs/nearby", response_model=NearbyGigsResponse)
async def gigs_nearby(
    request: Request,
    lat: float,
    lng: float,
    radius_miles: float = 25.0,
    limit: int | None = None,
    service: ProximitySearchService[GigRecord] = Depends(get_search_service),
):
    """
    Active gigs within radius_miles of (lat, lng), nearest first.
    `partial` is true when some geohash cells could not be queried.
    """
    center = _coordinate_or_400(lat, lng)
    if not (0 < radius_miles <= RADIUS_MILES_MAX):
        raise HTTPException(
            status_code=400,
            detail=f"radius_miles must be greater than 0 and at most {RADIUS_MILES_MAX:g}",
        )
    if limit is None:
        limit = settings.nearby_default_limit
    if not (LIMIT_MIN <= limit <= LIMIT_MAX):
        raise HTTPException(status_code=400, detail=f"limit must be between {LIMIT_MIN} and {LIMIT_MAX}")
    logger.info("telemetry route=gigs_nearby radius_miles=%s limit=%s", radius_miles, limit)

    try:
        report = await service.search(center, radius_miles, limit=limit)
    except (InvalidCoordinate, InvalidRadius) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StoreQueryFailure as e:
        logger.warning("telemetry gigs_nearby_store_error cell=%s error=%s", e.cell, str(e))
        raise HTTPException(
            status_code=502,
            detail="Gig store unavailable. Please try again.",
        ) from e

    return NearbyGigsResponse(
        precision=report.plan.precision,
        cells=sorted(report.plan.cell_hashes),
        partial=report.partial,
        failed_cells=report.failed_cells,
        may_undercover=report.plan.may_undercover,
        gigs=[
            GigInfo(
                gig_id=r.record.gig_id,
                title=r.record.title,
                city=r.record.city,
                state=r.record.state,
                lat=r.record.lat,
                lng=r.record.lng,
                geohash=r.record.geohash,
                gig_type=r.record.gig_type,
                source=r.record.source,
                quality_score=r.record.quality_score,
                pay_min=r.record.pay_min,
                pay_max=r.record.pay_max,
                pay_type=r.record.pay_type,
                distance_miles=round(r.distance_miles, 2),
            )
            for r in report.results
        ],
    )


@app.get("/geohash", response_model=GeohashResponse)
def get_geohash(request: Request, lat: float, lng: float, precision: int = 6):
    """Encode a point and list its neighbouring cells (for record writers and debugging)."""
    _coordinate_or_400(lat, lng)
    if not (PRECISION_MIN <= precision <= PRECISION_MAX):
        raise HTTPException(
            status_code=400,
            detail=f"precision must be between {PRECISION_MIN} and {PRECISION_MAX}",
        )
    cell = geohash.encode(lat, lng, precision)
    centroid = geohash.decode(cell)
    return GeohashResponse(
        geohash=cell,
        precision=precision,
        lat=centroid.lat,
        lng=centroid.lng,
        neighbors=geohash.neighbors(cell),
    )
