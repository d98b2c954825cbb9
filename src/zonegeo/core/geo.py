"""
Geospatial helpers.

A tiny geometry kernel so the resolver can do containment and distance checks
without pulling in heavier GIS dependencies.

Conventions:
- Points are `(lon, lat)` tuples in decimal degrees (GeoJSON order).
- Rings are implicitly closed; the first vertex does not need to be repeated.
- Polygons are a tuple of rings: the outer boundary first, then holes.
"""

from __future__ import annotations

import math
from typing import Any, Sequence

from zonegeo.core.errors import InvalidCoordinate, InvalidGeometry, InvalidUnit

Point = tuple[float, float]
Ring = tuple[Point, ...]
Polygon = tuple[Ring, ...]
Linestring = tuple[Point, ...]

EARTH_RADIUS_M = 6371008.8

UNIT_FACTORS: dict[str, float] = {
    "kilometers": EARTH_RADIUS_M / 1000,
    "metres": EARTH_RADIUS_M,
    "degrees": EARTH_RADIUS_M / 111325,
}


def as_point(value: Any) -> Point:
    """Coerce a `[lon, lat, ...]` sequence into a validated `(lon, lat)` tuple.

    Extra components (e.g. altitude) are ignored.

    Raises:
        InvalidCoordinate: If the value is not a sequence of at least two finite numbers.
    """
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise InvalidCoordinate(f"Point must be a [lon, lat] sequence, got {value!r}")
    if len(value) < 2:
        raise InvalidCoordinate(f"Point needs at least 2 components, got {len(value)}")
    lon, lat = value[0], value[1]
    if isinstance(lon, (bool, str, bytes)) or isinstance(lat, (bool, str, bytes)):
        raise InvalidCoordinate(f"Point components must be numbers, got {value!r}")
    try:
        lon_f = float(lon)
        lat_f = float(lat)
    except (TypeError, ValueError) as exc:
        raise InvalidCoordinate(f"Point components must be numbers, got {value!r}") from exc
    if not (math.isfinite(lon_f) and math.isfinite(lat_f)):
        raise InvalidCoordinate(f"Point components must be finite, got {value!r}")
    return (lon_f, lat_f)


def as_ring(value: Any) -> Ring:
    """Validate a ring (>= 3 points)."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise InvalidGeometry(f"Ring must be a sequence of points, got {type(value).__name__}")
    ring = tuple(as_point(p) for p in value)
    if len(ring) < 3:
        raise InvalidGeometry(f"Ring must have at least 3 points, got {len(ring)}")
    return ring


def as_polygon(value: Any) -> Polygon:
    """Validate a polygon (one outer ring plus optional hole rings)."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise InvalidGeometry(f"Polygon must be a sequence of rings, got {type(value).__name__}")
    polygon = tuple(as_ring(r) for r in value)
    if not polygon:
        raise InvalidGeometry("Polygon must have at least one ring")
    return polygon


def as_linestring(value: Any) -> Linestring:
    """Validate a linestring (>= 2 points)."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise InvalidGeometry(f"Linestring must be a sequence of points, got {type(value).__name__}")
    line = tuple(as_point(p) for p in value)
    if len(line) < 2:
        raise InvalidGeometry(f"Linestring must have at least 2 points, got {len(line)}")
    return line


def radians_to_length(radians: float, units: str = "kilometers") -> float:
    """Convert a central angle to a length in `units`."""
    factor = UNIT_FACTORS.get(units)
    if factor is None:
        raise InvalidUnit(f"{units!r} units is invalid; expected one of {sorted(UNIT_FACTORS)}")
    return radians * factor


def distance(a: Point, b: Point, units: str = "kilometers") -> float:
    """Compute great-circle (haversine) distance between two `(lon, lat)` points."""
    lon1, lat1 = a[0], a[1]
    lon2, lat2 = b[0], b[1]
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)

    h = math.sin(dlat / 2) ** 2 + math.sin(dlon / 2) ** 2 * math.cos(phi1) * math.cos(phi2)
    # Rounding can push h a hair above 1 for antipodal points.
    h = min(1.0, h)
    return radians_to_length(2 * math.atan2(math.sqrt(h), math.sqrt(1 - h)), units)


def point_in_ring(p: Point, ring: Ring) -> bool:
    """Even-odd ray cast of `p` against one implicitly closed ring.

    Points exactly on an edge or vertex get whatever the half-open comparison
    `(yi > y) != (yj > y)` yields; there is no special-casing.
    """
    x, y = p[0], p[1]
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def point_in_polygon(p: Point, polygon: Polygon) -> bool:
    """Return True when `p` is inside `polygon` (holes excluded).

    Each ring is tested independently and the results are XOR-folded, so a point
    inside the outer ring and inside a hole ends up outside.
    """
    if not polygon:
        raise InvalidGeometry("Polygon must have at least one ring")
    inside = False
    for ring in polygon:
        if len(ring) < 3:
            raise InvalidGeometry(f"Ring must have at least 3 points, got {len(ring)}")
        inside = inside ^ point_in_ring(p, ring)
    return inside


def _dot(u: tuple[float, float], v: tuple[float, float]) -> float:
    return u[0] * v[0] + u[1] * v[1]


def point_to_segment_distance(p: Point, a: Point, b: Point, units: str = "kilometers") -> float:
    """Distance from `p` to the segment `a`-`b`.

    The projection is done in plain lon/lat space; only the final distance is
    geodesic. Fine for short boundary segments, wrong for segments spanning large
    longitude ranges.
    """
    v = (b[0] - a[0], b[1] - a[1])
    w = (p[0] - a[0], p[1] - a[1])
    c1 = _dot(w, v)
    if c1 <= 0:
        return distance(p, a, units)

    c2 = _dot(v, v)
    if c2 <= c1:
        return distance(p, b, units)

    t = c1 / c2
    projected = (a[0] + t * v[0], a[1] + t * v[1])
    return distance(p, projected, units)


def point_to_line_distance(p: Point, line: Linestring, units: str = "kilometers") -> float:
    """Minimum segment distance from `p` to every segment of `line`."""
    if len(line) < 2:
        raise InvalidGeometry(f"Linestring must have at least 2 points, got {len(line)}")
    best = math.inf
    for i in range(len(line) - 1):
        d = point_to_segment_distance(p, line[i], line[i + 1], units)
        if d < best:
            best = d
    return best
