import json
import threading

import pytest

from zonegeo.core.errors import DatasetLoadFailure, InvalidGeometry
from zonegeo.dataset.loader import ZoneIndexHandle, load_zone_index, parse_zone_index
from zonegeo.resolver.resolve import resolve

from conftest import NEAR_LINE, SQUARE


def _feature(geometry: dict, **props) -> dict:
    return {"type": "Feature", "properties": props, "geometry": geometry}


def _geojson_dataset() -> dict:
    return {
        "convexhulls": [_feature({"type": "Polygon", "coordinates": [SQUARE]}, zoneName="North")],
        "zoneToGeometryFeatures": {
            "North": [
                _feature(
                    {
                        "type": "MultiPolygon",
                        "coordinates": [[SQUARE], [[[50, 50], [50, 51], [51, 51]]]],
                    }
                )
            ]
        },
        "zoneToLines": {"North": [NEAR_LINE, {"type": "LineString", "coordinates": NEAR_LINE}]},
    }


def test_parse_geojson_feature_dataset():
    index = parse_zone_index(json.dumps(_geojson_dataset()).encode("utf-8"))
    assert [zone for _, zone in index.hulls] == ["North"]
    assert len(index.polygons_for("North")) == 2
    assert len(index.lines_for("North")) == 2
    assert resolve((5.0, 5.0), index, max_fallback_distance_km=2.0) == "North"
    assert resolve((20.0, 20.0), index, max_fallback_distance_km=2.0) == "North"


def test_parse_plain_coordinate_dataset():
    raw = {
        "hulls": [{"zone": "North", "geometry": [SQUARE]}],
        "zoneToPolygons": {"North": [[SQUARE]]},
        "zoneToLines": {"North": [NEAR_LINE]},
    }
    index = parse_zone_index(json.dumps(raw))
    assert index.stats() == {"zones": 1, "hulls": 1, "polygons": 1, "lines": 1}


@pytest.mark.parametrize(
    "data",
    [
        b"{not json",
        b"[]",
        json.dumps({"convexhulls": [], "zoneToLines": {}}).encode(),
        json.dumps({"convexhulls": [{"type": "Feature", "properties": {}, "geometry": None}],
                    "zoneToGeometryFeatures": {}, "zoneToLines": {}}).encode(),
        json.dumps({"convexhulls": [], "zoneToGeometryFeatures": {"Z": [{"type": "Point", "coordinates": [0, 0]}]},
                    "zoneToLines": {}}).encode(),
        json.dumps({"convexhulls": [], "zoneToGeometryFeatures": {"": [[SQUARE]]}, "zoneToLines": {}}).encode(),
        json.dumps({"convexhulls": [], "zoneToGeometryFeatures": {}, "zoneToLines": {" ": [[[0, 0], [1, 1]]]}}).encode(),
    ],
)
def test_parse_rejects_malformed_datasets(data):
    with pytest.raises(DatasetLoadFailure):
        parse_zone_index(data)


def test_parse_surfaces_short_geometry():
    raw = {"convexhulls": [], "zoneToGeometryFeatures": {}, "zoneToLines": {"Z": [[[0, 0]]]}}
    with pytest.raises(InvalidGeometry):
        parse_zone_index(json.dumps(raw))


def test_load_zone_index_missing_file(tmp_path):
    with pytest.raises(DatasetLoadFailure, match="Cannot read zone dataset"):
        load_zone_index(tmp_path / "missing.json")


def test_load_zone_index_from_disk(tmp_path):
    path = tmp_path / "geo.generated.json"
    path.write_text(json.dumps(_geojson_dataset()), encoding="utf-8")
    index = load_zone_index(path)
    assert index.zone_ids == ("North",)


def test_handle_single_flight_under_concurrency(north_index):
    started = threading.Event()
    release = threading.Event()
    calls = {"n": 0}

    def loader():
        calls["n"] += 1
        started.set()
        release.wait(5)
        return north_index

    handle = ZoneIndexHandle(loader)
    results = []
    # Eight callers race for the first load while the loader is blocked.
    threads = [threading.Thread(target=lambda: results.append(handle.get(timeout=5))) for _ in range(8)]
    for t in threads:
        t.start()
    assert started.wait(5)
    # Exactly one load is in flight; the rest are waiting on its future.
    assert handle.status() == "loading"
    release.set()
    for t in threads:
        t.join(5)

    assert calls["n"] == 1
    assert len(results) == 8
    assert all(r is north_index for r in results)
    assert handle.status() == "ready"


def test_handle_failure_poisons_until_reset(north_index):
    outcomes = [DatasetLoadFailure("disk on fire"), north_index]
    calls = {"n": 0}

    def loader():
        calls["n"] += 1
        out = outcomes.pop(0)
        if isinstance(out, Exception):
            raise out
        return out

    handle = ZoneIndexHandle(loader)
    with pytest.raises(DatasetLoadFailure, match="disk on fire"):
        handle.get()
    with pytest.raises(DatasetLoadFailure, match="disk on fire"):
        handle.get()
    assert calls["n"] == 1
    assert handle.status() == "failed"
    assert isinstance(handle.error(), DatasetLoadFailure)

    # reset() clears the failure; the next get() runs the loader again.
    assert handle.reset() is True
    assert handle.get() is north_index
    assert calls["n"] == 2
    # A loaded index is never thrown away.
    assert handle.reset() is False
    assert handle.get() is north_index


def test_handle_prefetch_loads_in_background(north_index):
    handle = ZoneIndexHandle(lambda: north_index)
    assert handle.status() == "idle"
    fut = handle.prefetch()
    assert fut.result(timeout=5) is north_index
    assert handle.prefetch() is fut
    assert handle.get() is north_index
