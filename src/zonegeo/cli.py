"""
ZoneGeo CLI entrypoint.

This CLI is intended for batch jobs and quick local debugging without the HTTP API.
It delegates all resolution logic to `zonegeo.resolver.resolve`.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from zonegeo.batch.csv_annotate import annotate_csv
from zonegeo.config.settings import Settings, get_settings
from zonegeo.core.errors import ZoneGeoError
from zonegeo.core.logging import configure_logging
from zonegeo.dataset.loader import ZoneIndexHandle
from zonegeo.domain.models import ResolveResult
from zonegeo.resolver.resolve import resolve_detailed


def _max_distance_km(args: argparse.Namespace, settings: Settings) -> float:
    if args.max_distance_km is not None:
        return float(args.max_distance_km)
    return settings.resolver.max_fallback_distance_km


def _handle(args: argparse.Namespace, settings: Settings) -> ZoneIndexHandle:
    return ZoneIndexHandle.from_path(args.dataset or settings.dataset.path)


def _cmd_resolve(args: argparse.Namespace) -> int:
    """Handle the `resolve` subcommand."""
    settings = get_settings()
    index = _handle(args, settings).get()
    point = (float(args.lon), float(args.lat))
    resolution = resolve_detailed(point, index, max_fallback_distance_km=_max_distance_km(args, settings))

    if args.json:
        result = ResolveResult.from_resolution(point, resolution)
        print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    zone = resolution.zone_id if resolution.zone_id is not None else ""
    print(f"{args.lon},{args.lat},{zone}")
    return 0


def _cmd_annotate_csv(args: argparse.Namespace) -> int:
    """Handle the `annotate-csv` subcommand."""
    settings = get_settings()
    index = _handle(args, settings).get()
    summary = annotate_csv(
        args.path,
        index,
        max_fallback_distance_km=_max_distance_km(args, settings),
        output_path=args.output,
        zone_column=args.zone_column or settings.batch.zone_column,
        workers=int(args.workers) if args.workers is not None else settings.batch.workers,
        skip_invalid=bool(args.skip_invalid),
    )
    print(f"Processed {summary.rows} coordinates")
    print(f"  exact={summary.exact} fallback={summary.fallback} unmatched={summary.unmatched} skipped={summary.skipped}")
    print(f"  output: {summary.output_path}")
    return 0


def _cmd_dataset_info(args: argparse.Namespace) -> int:
    settings = get_settings()
    index = _handle(args, settings).get()
    payload = {
        "path": str(args.dataset or settings.dataset.path),
        "max_fallback_distance_km": settings.resolver.max_fallback_distance_km,
        **index.stats(),
    }
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ZoneGeo CLI."""
    parser = argparse.ArgumentParser(prog="zonegeo")
    parser.add_argument("--dataset", type=str, default=None, help="Zone dataset JSON (default from config).")
    parser.add_argument("--log-level", type=str, default=None, help="Override the configured log level.")
    sub = parser.add_subparsers(dest="command", required=True)

    res = sub.add_parser("resolve", help="Resolve one lon/lat point to a zone.")
    res.add_argument("--lon", required=True, type=float)
    res.add_argument("--lat", required=True, type=float)
    res.add_argument("--max-distance-km", type=float, default=None, help="Fallback acceptance threshold.")
    res.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    res.set_defaults(func=_cmd_resolve)

    ann = sub.add_parser("annotate-csv", help="Append/overwrite a zone column in a lon,lat CSV file.")
    ann.add_argument("path", type=str)
    ann.add_argument("--output", type=str, default=None, help="Write here instead of in place.")
    ann.add_argument("--zone-column", type=str, default=None)
    ann.add_argument("--workers", type=int, default=None)
    ann.add_argument("--max-distance-km", type=float, default=None, help="Fallback acceptance threshold.")
    ann.add_argument("--skip-invalid", action="store_true", help="Leave invalid rows unannotated instead of failing.")
    ann.set_defaults(func=_cmd_annotate_csv)

    info = sub.add_parser("dataset-info", help="Load the dataset and print its size.")
    info.set_defaults(func=_cmd_dataset_info)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m zonegeo.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except (ZoneGeoError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
