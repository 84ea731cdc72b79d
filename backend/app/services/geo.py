import math
import random
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0

DEFAULT_CENTER = (37.7749, -122.4194)  # San Francisco
DEFAULT_ZOOM = 12
MIN_ZOOM = 1
MAX_FIT_ZOOM = 15

TILE_SIZE_PX = 256


@dataclass(frozen=True)
class Bounds:
    south: float
    west: float
    north: float
    east: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.south + self.north) / 2, (self.west + self.east) / 2


@dataclass(frozen=True)
class Viewport:
    center_lat: float
    center_lng: float
    zoom: int
    bounds: Bounds | None = None


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres between two points given in degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def bounding_box(points: list[tuple[float, float]]) -> Bounds:
    lats = [p[0] for p in points]
    lngs = [p[1] for p in points]
    return Bounds(south=min(lats), west=min(lngs), north=max(lats), east=max(lngs))


def _mercator_y(lat: float) -> float:
    lat = max(min(lat, 85.0511), -85.0511)
    sin = math.sin(math.radians(lat))
    return math.log((1 + sin) / (1 - sin)) / 2


def fit_bounds(
    points: list[tuple[float, float]],
    width_px: int = 640,
    height_px: int = 480,
    max_zoom: int = MAX_FIT_ZOOM,
) -> Viewport:
    """Fit a viewport of the given pixel size around all points.

    The zoom is the largest Web Mercator level at which the bounding box still
    fits, clamped to ``max_zoom`` so near-duplicate points do not over-zoom.
    """
    if not points:
        return Viewport(center_lat=DEFAULT_CENTER[0], center_lng=DEFAULT_CENTER[1], zoom=DEFAULT_ZOOM)

    bounds = bounding_box(points)
    center_lat, center_lng = bounds.center

    lng_fraction = (bounds.east - bounds.west) / 360.0
    lat_fraction = (_mercator_y(bounds.north) - _mercator_y(bounds.south)) / (2 * math.pi)

    zooms = []
    if lng_fraction > 0:
        zooms.append(math.log2(width_px / TILE_SIZE_PX / lng_fraction))
    if lat_fraction > 0:
        zooms.append(math.log2(height_px / TILE_SIZE_PX / lat_fraction))

    zoom = math.floor(min(zooms)) if zooms else max_zoom
    zoom = max(MIN_ZOOM, min(zoom, max_zoom))
    return Viewport(center_lat=center_lat, center_lng=center_lng, zoom=zoom, bounds=bounds)


def is_on_land(lat: float, lng: float) -> bool:
    """Coarse ocean exclusion; anything not obviously sea counts as land."""
    if -180 < lng < -140 and -50 < lat < 50:  # deep Pacific
        return False
    if -60 < lng < -20 and -40 < lat < 50:  # deep Atlantic
        return False
    if lat > 80 or lat < -75:
        return False
    return True


def random_point_in_bounds(bounds: Bounds, rng: random.Random, attempts: int = 10) -> tuple[float, float] | None:
    for _ in range(attempts):
        lat = bounds.south + rng.random() * (bounds.north - bounds.south)
        lng = bounds.west + rng.random() * (bounds.east - bounds.west)
        if is_on_land(lat, lng):
            return lat, lng
    return None
