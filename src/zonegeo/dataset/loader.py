"""
Zone dataset loader.

The dataset is a (potentially large) JSON file produced by an external generation
step. It has three top-level fields:
- `convexhulls` (or `hulls`): hull geometries tagged with a zone name,
- `zoneToGeometryFeatures` (or `zoneToPolygons`): zone -> precise polygons,
- `zoneToLines`: zone -> boundary linestrings.

Geometries may be raw coordinate arrays, GeoJSON geometry objects or GeoJSON
Features wrapping them. We validate the top-level shape with Pydantic, normalize
geometry into plain coordinate arrays and hand them to `ZoneIndex.build`.

Parsing takes a while on real datasets, so `ZoneIndexHandle` makes sure it
happens at most once per handle, no matter how many threads ask concurrently.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from zonegeo.core.env import resolve_project_path
from zonegeo.core.errors import DatasetLoadFailure
from zonegeo.index.zone_index import ZoneIndex

logger = logging.getLogger(__name__)

HandleStatus = Literal["idle", "loading", "ready", "failed"]


class ZoneDatasetPayload(BaseModel):
    """Top-level shape of the serialized zone dataset."""

    model_config = ConfigDict(extra="ignore")

    hulls: list[Any] = Field(validation_alias=AliasChoices("convexhulls", "hulls"))
    zone_to_polygons: dict[str, list[Any]] = Field(
        validation_alias=AliasChoices("zoneToGeometryFeatures", "zoneToPolygons")
    )
    zone_to_lines: dict[str, list[Any]] = Field(validation_alias=AliasChoices("zoneToLines", "zone_to_lines"))


def _unwrap_feature(obj: Any) -> Any:
    if isinstance(obj, dict) and obj.get("type") == "Feature":
        return obj.get("geometry")
    return obj


def _polygons_of(obj: Any) -> list[Any]:
    """Return the polygon coordinate arrays carried by `obj`.

    A `MultiPolygon` expands into several polygons; a raw array is one polygon.
    """
    geom = _unwrap_feature(obj)
    if isinstance(geom, dict):
        kind = geom.get("type")
        if kind == "Polygon":
            return [geom.get("coordinates")]
        if kind == "MultiPolygon":
            return list(geom.get("coordinates") or [])
        raise ValueError(f"Unsupported polygon geometry type: {kind!r}")
    return [geom]


def _line_of(obj: Any) -> Any:
    geom = _unwrap_feature(obj)
    if isinstance(geom, dict):
        kind = geom.get("type")
        if kind != "LineString":
            raise ValueError(f"Unsupported line geometry type: {kind!r}")
        return geom.get("coordinates")
    return geom


def _hull_zone(obj: Any) -> str:
    if isinstance(obj, dict):
        props = obj.get("properties") or {}
        zone = props.get("zoneName") or props.get("zone") or obj.get("zone")
        if isinstance(zone, str) and zone:
            return zone
    raise ValueError("Hull entry has no zone name (expected properties.zoneName or zone)")


def _hull_geometry(obj: Any) -> Any:
    if isinstance(obj, dict) and obj.get("type") != "Feature" and "geometry" in obj:
        return obj["geometry"]
    return obj


def build_zone_index(payload: ZoneDatasetPayload) -> ZoneIndex:
    """Normalize a validated payload into a `ZoneIndex`."""
    keyed = (("zoneToGeometryFeatures", payload.zone_to_polygons), ("zoneToLines", payload.zone_to_lines))
    for field_name, mapping in keyed:
        if any(not zone.strip() for zone in mapping):
            raise DatasetLoadFailure(f"{field_name} has an empty zone name")

    hulls: list[tuple[Any, str]] = []
    for i, entry in enumerate(payload.hulls):
        try:
            zone = _hull_zone(entry)
            polys = _polygons_of(_hull_geometry(entry))
        except ValueError as exc:
            raise DatasetLoadFailure(f"Invalid hull entry #{i}: {exc}") from exc
        hulls.extend((poly, zone) for poly in polys)

    zone_to_polygons: dict[str, list[Any]] = {}
    for zone, items in payload.zone_to_polygons.items():
        try:
            zone_to_polygons[zone] = [poly for item in items for poly in _polygons_of(item)]
        except ValueError as exc:
            raise DatasetLoadFailure(f"Invalid polygon for zone {zone!r}: {exc}") from exc

    zone_to_lines: dict[str, list[Any]] = {}
    for zone, items in payload.zone_to_lines.items():
        try:
            zone_to_lines[zone] = [_line_of(item) for item in items]
        except ValueError as exc:
            raise DatasetLoadFailure(f"Invalid line for zone {zone!r}: {exc}") from exc

    return ZoneIndex.build(hulls, zone_to_polygons, zone_to_lines)


def parse_zone_index(data: bytes | str) -> ZoneIndex:
    """Parse dataset bytes into a `ZoneIndex`.

    Raises:
        DatasetLoadFailure: If the bytes are not JSON or the top-level shape is wrong.
        InvalidGeometry / InvalidCoordinate: If a geometry inside the dataset is malformed.
    """
    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DatasetLoadFailure(f"Zone dataset is not valid JSON: {exc}") from exc
    try:
        payload = ZoneDatasetPayload.model_validate(raw)
    except ValidationError as exc:
        raise DatasetLoadFailure(f"Zone dataset has an invalid shape: {exc}") from exc
    return build_zone_index(payload)


def load_zone_index(path: str | Path) -> ZoneIndex:
    """Read and parse the dataset file at `path` (relative paths use the project root)."""
    resolved = resolve_project_path(path)
    t0 = time.monotonic()
    try:
        data = resolved.read_bytes()
    except OSError as exc:
        logger.error("Error loading zone dataset %s, please generate it first: %s", resolved, exc)
        raise DatasetLoadFailure(f"Cannot read zone dataset {resolved}: {exc}") from exc

    index = parse_zone_index(data)
    logger.info(
        "Loaded zone dataset %s in %d ms (%s)",
        resolved,
        int((time.monotonic() - t0) * 1000),
        ", ".join(f"{k}={v}" for k, v in index.stats().items()),
    )
    return index


class ZoneIndexHandle:
    """Once-initialized, thread-safe holder for a `ZoneIndex`.

    Concurrent first callers share one in-flight load. A failed load poisons the
    handle: every waiter and every later `get()` sees the same exception until
    `reset()` is called.
    """

    def __init__(self, loader: Callable[[], ZoneIndex]):
        self._loader = loader
        self._lock = threading.Lock()
        self._future: Future[ZoneIndex] | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> "ZoneIndexHandle":
        return cls(lambda: load_zone_index(path))

    def _claim(self) -> tuple[Future[ZoneIndex], bool]:
        with self._lock:
            if self._future is not None:
                return self._future, False
            fut: Future[ZoneIndex] = Future()
            fut.set_running_or_notify_cancel()
            self._future = fut
            return fut, True

    def _run(self, fut: Future[ZoneIndex]) -> None:
        try:
            index = self._loader()
        except BaseException as exc:
            fut.set_exception(exc)
        else:
            fut.set_result(index)

    def get(self, timeout: float | None = None) -> ZoneIndex:
        """Return the index, loading it on first use.

        Raises whatever the loader raised (typically `DatasetLoadFailure`).
        """
        fut, owner = self._claim()
        if owner:
            self._run(fut)
        return fut.result(timeout=timeout)

    def prefetch(self) -> Future[ZoneIndex]:
        """Start loading on a background thread (no-op if already started)."""
        fut, owner = self._claim()
        if owner:
            threading.Thread(target=self._run, args=(fut,), name="zonegeo-dataset-load", daemon=True).start()
        return fut

    def status(self) -> HandleStatus:
        with self._lock:
            fut = self._future
        if fut is None:
            return "idle"
        if not fut.done():
            return "loading"
        return "failed" if fut.exception() is not None else "ready"

    def error(self) -> BaseException | None:
        with self._lock:
            fut = self._future
        if fut is None or not fut.done():
            return None
        return fut.exception()

    def reset(self) -> bool:
        """Forget a failed load so the next `get()` retries. Returns True if cleared.

        A loaded or in-flight index is never discarded.
        """
        with self._lock:
            fut = self._future
            if fut is None or not fut.done() or fut.exception() is None:
                return False
            self._future = None
            return True
