"""
In-memory zone index.

Holds the three views of a zone dataset:
- `hulls`: simplified convex hulls tagged with their zone (cheap pre-filter),
- precise polygons per zone (containment),
- boundary linestrings per zone (nearest-zone fallback).

Hulls are approximations. They can over-cover (extra candidates) and, because of
simplification, under-cover (missed candidates). The resolver handles both.

A `ZoneIndex` is frozen after `build()`; readers never need a lock.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from zonegeo.core.errors import InvalidGeometry
from zonegeo.core.geo import Linestring, Polygon, as_linestring, as_polygon


@dataclass(frozen=True)
class ZoneIndex:
    hulls: tuple[tuple[Polygon, str], ...]
    zone_to_polygons: Mapping[str, tuple[Polygon, ...]]
    zone_to_lines: Mapping[str, tuple[Linestring, ...]]

    @classmethod
    def build(
        cls,
        hulls: Iterable[tuple[Any, str]],
        zone_to_polygons: Mapping[str, Iterable[Any]],
        zone_to_lines: Mapping[str, Iterable[Any]],
    ) -> "ZoneIndex":
        """Validate raw coordinate arrays and freeze them into an index.

        Raises:
            InvalidGeometry: On rings with < 3 points, empty polygons or lines with < 2 points.
            InvalidCoordinate: On non-numeric or non-finite vertices.
        """
        frozen_hulls: list[tuple[Polygon, str]] = []
        for polygon, zone_id in hulls:
            frozen_hulls.append((as_polygon(polygon), _zone_key(zone_id)))

        polygons = {
            _zone_key(zone_id): tuple(as_polygon(p) for p in polys)
            for zone_id, polys in zone_to_polygons.items()
        }
        lines = {
            _zone_key(zone_id): tuple(as_linestring(line) for line in zone_lines)
            for zone_id, zone_lines in zone_to_lines.items()
        }
        return cls(
            hulls=tuple(frozen_hulls),
            zone_to_polygons=MappingProxyType(polygons),
            zone_to_lines=MappingProxyType(lines),
        )

    def polygons_for(self, zone_id: str) -> tuple[Polygon, ...]:
        """Precise polygons of `zone_id` (empty when the zone has none)."""
        return self.zone_to_polygons.get(zone_id, ())

    def lines_for(self, zone_id: str) -> tuple[Linestring, ...]:
        """Boundary linestrings of `zone_id` (empty when the zone has none)."""
        return self.zone_to_lines.get(zone_id, ())

    @property
    def zone_ids(self) -> tuple[str, ...]:
        """All zones known to the index.

        Order: zones with boundary lines first (dataset order), then zones only
        present in polygons or hulls.
        """
        seen = dict.fromkeys(self.zone_to_lines)
        seen.update(dict.fromkeys(self.zone_to_polygons))
        seen.update(dict.fromkeys(zone_id for _, zone_id in self.hulls))
        return tuple(seen)

    def stats(self) -> dict[str, int]:
        return {
            "zones": len(self.zone_ids),
            "hulls": len(self.hulls),
            "polygons": sum(len(v) for v in self.zone_to_polygons.values()),
            "lines": sum(len(v) for v in self.zone_to_lines.values()),
        }


def _zone_key(zone_id: Any) -> str:
    if not isinstance(zone_id, str) or not zone_id:
        raise InvalidGeometry(f"Zone identifier must be a non-empty string, got {zone_id!r}")
    return zone_id
