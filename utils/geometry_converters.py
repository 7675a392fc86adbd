"""
Geometry utilities for GIS Layer Viewer.

Extent computation and click hit-testing for rendered features, built on
Shapely. Coordinates follow GeoJSON convention (lng, lat); map clicks arrive
as (lat, lng) like Leaflet's LatLng.

Functions:
    compute_bounds: Combined extent of a set of geometries
    bounds_to_leaflet: Convert extent to Leaflet [[south, west], [north, east]]
    geometry_hit: Test whether a click coordinate falls on a geometry
"""

from typing import Iterable, List, Optional

from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry

from core.models import Bounds, Coordinate
from utils.logger import get_logger

logger = get_logger(__name__)


def compute_bounds(geometries: Iterable[Optional[BaseGeometry]]) -> Optional[Bounds]:
    """
    Compute the combined extent of geometries.

    Parameters:
    -----------
    geometries : Iterable[Optional[BaseGeometry]]
        Shapely geometries; None and empty geometries are skipped

    Returns:
    --------
    Optional[Bounds]
        (min_lng, min_lat, max_lng, max_lat), or None when no geometry has an extent

    Example:
        >>> compute_bounds([Point(31.2, 30.0), Point(29.9, 31.2)])
        (29.9, 30.0, 31.2, 31.2)
    """
    min_x = min_y = float('inf')
    max_x = max_y = float('-inf')
    found = False

    for geom in geometries:
        if geom is None or geom.is_empty:
            continue
        gx0, gy0, gx1, gy1 = geom.bounds
        min_x, min_y = min(min_x, gx0), min(min_y, gy0)
        max_x, max_y = max(max_x, gx1), max(max_y, gy1)
        found = True

    if not found:
        return None
    return (min_x, min_y, max_x, max_y)


def bounds_to_leaflet(bounds: Bounds) -> List[List[float]]:
    min_x, min_y, max_x, max_y = bounds
    return [[min_y, min_x], [max_y, max_x]]


def geometry_hit(geom: Optional[BaseGeometry], coordinate: Coordinate, tolerance: float) -> bool:
    """
    Check whether a clicked (lat, lng) coordinate coincides with a geometry.

    Points must match within the tolerance. Lines and polygons match when the
    click lies on or inside them, within the same tolerance.
    """
    if geom is None or geom.is_empty:
        return False
    lat, lng = coordinate
    return geom.distance(Point(lng, lat)) <= tolerance
