"""Pydantic models for GET /gigs/nearby and GET /geohash."""
from pydantic import BaseModel


class GigInfo(BaseModel):
    gig_id: str
    title: str
    city: str
    state: str
    lat: float
    lng: float
    geohash: str | None
    gig_type: str | None = None
    source: str
    quality_score: float
    pay_min: float | None = None
    pay_max: float | None = None
    pay_type: str | None = None
    distance_miles: float


class NearbyGigsResponse(BaseModel):
    precision: int
    cells: list[str]
    partial: bool = False
    failed_cells: list[str] = []
    may_undercover: bool = False
    gigs: list[GigInfo]


class GeohashResponse(BaseModel):
    geohash: str
    precision: int
    lat: float  # cell centroid
    lng: float
    neighbors: dict[str, str]
