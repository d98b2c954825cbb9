"""
Point -> zone resolution.

Three stages, re-run for every point (no state is kept between calls):
1) Hull pre-filter: zones whose convex hull contains the point.
2) Precise filter: of those, zones with at least one polygon containing the point.
3) Exactly one survivor is an exact hit. Zero survivors (hulls are simplified and
   can miss) or several (overlapping polygons) fall back to the nearest boundary
   line, accepted only when closer than `max_fallback_distance_km`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Literal

from zonegeo.core.geo import as_point, point_in_polygon, point_to_line_distance
from zonegeo.index.zone_index import ZoneIndex

logger = logging.getLogger(__name__)

ResolutionMethod = Literal["exact", "fallback", "none"]


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one point, with the intermediate candidate sets."""

    zone_id: str | None
    method: ResolutionMethod
    distance_km: float | None
    candidates: tuple[str, ...]
    refined: tuple[str, ...]


def hull_candidates(point: tuple[float, float], index: ZoneIndex) -> tuple[str, ...]:
    """Zones whose hull contains `point`, in hull order, de-duplicated."""
    hits = dict.fromkeys(zone_id for hull, zone_id in index.hulls if point_in_polygon(point, hull))
    return tuple(hits)


def refine_candidates(point: tuple[float, float], index: ZoneIndex, candidates: tuple[str, ...]) -> tuple[str, ...]:
    """Keep the candidates that have a precise polygon containing `point`."""
    return tuple(
        zone_id
        for zone_id in candidates
        if any(point_in_polygon(point, poly) for poly in index.polygons_for(zone_id))
    )


def nearest_zone(
    point: tuple[float, float], index: ZoneIndex, zone_ids: tuple[str, ...]
) -> tuple[str, float] | None:
    """Closest zone by boundary-line distance (km). Ties keep the first zone seen."""
    best: tuple[str, float] | None = None
    for zone_id in zone_ids:
        for line in index.lines_for(zone_id):
            d = point_to_line_distance(point, line, "kilometers")
            if best is None or d < best[1]:
                best = (zone_id, d)
    return best


def _check_threshold(max_fallback_distance_km: float) -> float:
    value = float(max_fallback_distance_km)
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"max_fallback_distance_km must be a finite number > 0, got {max_fallback_distance_km!r}")
    return value


def resolve_detailed(point: Any, index: ZoneIndex, *, max_fallback_distance_km: float) -> Resolution:
    """Resolve `point` (`(lon, lat)`) and report how the answer was reached.

    Raises:
        InvalidCoordinate: If `point` is not two finite numbers.
        ValueError: If the threshold is not a positive finite number.
    """
    p = as_point(point)
    threshold = _check_threshold(max_fallback_distance_km)

    candidates = hull_candidates(p, index)
    refined = refine_candidates(p, index, candidates)
    if len(refined) == 1:
        return Resolution(zone_id=refined[0], method="exact", distance_km=None, candidates=candidates, refined=refined)

    pool = refined if refined else index.zone_ids
    nearest = nearest_zone(p, index, pool)
    if nearest is None:
        logger.debug("No boundary lines to fall back on for %s (pool=%d)", p, len(pool))
        return Resolution(zone_id=None, method="none", distance_km=None, candidates=candidates, refined=refined)

    zone_id, dist = nearest
    logger.debug(
        "Fallback for %s: nearest=%s %.3f km (refined=%d, threshold=%.3f km)",
        p,
        zone_id,
        dist,
        len(refined),
        threshold,
    )
    if dist < threshold:
        return Resolution(zone_id=zone_id, method="fallback", distance_km=dist, candidates=candidates, refined=refined)
    return Resolution(zone_id=None, method="none", distance_km=dist, candidates=candidates, refined=refined)


def resolve(point: Any, index: ZoneIndex, *, max_fallback_distance_km: float) -> str | None:
    """Return the zone id for `point`, or None when nothing matches."""
    return resolve_detailed(point, index, max_fallback_distance_km=max_fallback_distance_km).zone_id
