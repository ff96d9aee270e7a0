"""Error taxonomy for gig proximity search."""


class JoviError(Exception):
    """Base exception for all gig search errors."""


class InvalidCoordinate(JoviError, ValueError):
    """Latitude or longitude outside the valid range."""

    def __init__(self, lat: float, lng: float):
        self.lat = lat
        self.lng = lng
        super().__init__(f"Invalid coordinate ({lat}, {lng}): lat must be in [-90, 90], lng in [-180, 180]")


class InvalidRadius(JoviError, ValueError):
    """Search radius is not a positive number of miles."""

    def __init__(self, radius_miles: float):
        self.radius_miles = radius_miles
        super().__init__(f"radius_miles must be > 0, got {radius_miles}")


class InvalidGeohash(JoviError, ValueError):
    """String is not a valid base-32 geohash."""

    def __init__(self, geohash: str, detail: str = ""):
        self.geohash = geohash
        msg = f"Invalid geohash: '{geohash}'"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class StoreQueryFailure(JoviError):
    """A range query against the gig store failed or timed out."""

    def __init__(self, cell: str, detail: str = ""):
        self.cell = cell
        super().__init__(f"Store query failed for cell '{cell}'" + (f": {detail}" if detail else ""))
