"""
API routes.

Endpoints:
- GET  `/api/resolve`: resolve one lon/lat point.
- POST `/api/resolve/batch`: resolve many points in one request.
- GET  `/api/dataset`: dataset load status and size.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query

from zonegeo.config.settings import get_settings
from zonegeo.core.errors import InvalidCoordinate, ZoneGeoError
from zonegeo.dataset.loader import ZoneIndexHandle
from zonegeo.domain.models import BatchResolveRequest, BatchResolveResponse, DatasetStatus, ResolveResult
from zonegeo.index.zone_index import ZoneIndex
from zonegeo.resolver.resolve import resolve_detailed

router = APIRouter()


@lru_cache
def _handle() -> ZoneIndexHandle:
    return ZoneIndexHandle.from_path(get_settings().dataset.path)


def _index() -> ZoneIndex:
    # Bad geometry inside the file leaves the dataset just as unloadable as a missing file.
    try:
        return _handle().get()
    except ZoneGeoError as exc:
        raise HTTPException(status_code=503, detail=f"Zone dataset unavailable: {exc}") from exc


def _threshold(max_distance_km: float | None) -> float:
    if max_distance_km is not None:
        return float(max_distance_km)
    return get_settings().resolver.max_fallback_distance_km


@router.get("/api/resolve", response_model=ResolveResult)
def get_resolve(
    lon: float = Query(..., allow_inf_nan=False),
    lat: float = Query(..., allow_inf_nan=False),
    max_distance_km: float | None = Query(default=None, gt=0, allow_inf_nan=False),
) -> ResolveResult:
    """Resolve a single point (longitude first)."""
    index = _index()
    point = (lon, lat)
    try:
        resolution = resolve_detailed(point, index, max_fallback_distance_km=_threshold(max_distance_km))
    except InvalidCoordinate as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return ResolveResult.from_resolution(point, resolution)


@router.post("/api/resolve/batch", response_model=BatchResolveResponse)
def post_resolve_batch(request: BatchResolveRequest) -> BatchResolveResponse:
    """Resolve every point of the request; output order matches input order."""
    index = _index()
    threshold = _threshold(request.max_distance_km)
    results = [
        ResolveResult.from_resolution(
            p.as_tuple(), resolve_detailed(p.as_tuple(), index, max_fallback_distance_km=threshold)
        )
        for p in request.points
    ]
    return BatchResolveResponse(results=results)


@router.get("/api/dataset", response_model=DatasetStatus)
def get_dataset_status() -> DatasetStatus:
    """Report whether the dataset is loaded (does not trigger a load)."""
    settings = get_settings()
    handle = _handle()
    status = handle.status()
    error = handle.error()
    stats = handle.get().stats() if status == "ready" else {}
    return DatasetStatus(
        path=settings.dataset.path,
        status=status,
        error=str(error) if error is not None else None,
        stats=stats,
        max_fallback_distance_km=settings.resolver.max_fallback_distance_km,
    )


@router.post("/api/dataset/reload", response_model=DatasetStatus)
def post_dataset_reload() -> DatasetStatus:
    """Clear a failed load and start a fresh attempt in the background."""
    handle = _handle()
    if handle.reset():
        handle.prefetch()
    return get_dataset_status()
