"""
Domain models (Pydantic).

These types are the stable JSON "contract" shared by the CLI and the HTTP API:
- query points (`LonLat`, `BatchResolveRequest`)
- resolution output (`ResolveResult`, `BatchResolveResponse`)
- dataset status (`DatasetStatus`)

The geometry core itself works on plain tuples; these models only exist at the edges.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from zonegeo.resolver.resolve import Resolution


class LonLat(BaseModel):
    """A geographic point in decimal degrees (longitude first)."""

    model_config = ConfigDict(allow_inf_nan=False)

    lon: float
    lat: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.lon, self.lat)


class ResolveResult(BaseModel):
    """Resolution outcome for one point."""

    lon: float
    lat: float
    zone: str | None
    method: Literal["exact", "fallback", "none"]
    distance_km: float | None = None
    candidates: list[str] = Field(default_factory=list)

    @classmethod
    def from_resolution(cls, point: tuple[float, float], resolution: Resolution) -> "ResolveResult":
        return cls(
            lon=point[0],
            lat=point[1],
            zone=resolution.zone_id,
            method=resolution.method,
            distance_km=resolution.distance_km,
            candidates=list(resolution.candidates),
        )


class BatchResolveRequest(BaseModel):
    points: list[LonLat] = Field(..., min_length=1, max_length=10_000)
    max_distance_km: float | None = Field(default=None, gt=0, allow_inf_nan=False)


class BatchResolveResponse(BaseModel):
    results: list[ResolveResult]


class DatasetStatus(BaseModel):
    path: str
    status: Literal["idle", "loading", "ready", "failed"]
    error: str | None = None
    stats: dict[str, int] = Field(default_factory=dict)
    max_fallback_distance_km: float
