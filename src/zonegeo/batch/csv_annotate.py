"""
CSV batch annotation.

Reads a CSV whose first two columns are `lon,lat` (with a header row), resolves
every row against a `ZoneIndex` and writes the file back with a zone column.

- Rows are resolved in a thread pool; output order always matches input order.
- If the header already has the zone column, that column is overwritten (so a
  file can be re-annotated in place); otherwise it is appended.
- Unmatched points get an empty zone cell.
"""

from __future__ import annotations

import csv
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from zonegeo.core.errors import InvalidCoordinate
from zonegeo.core.geo import as_point
from zonegeo.index.zone_index import ZoneIndex
from zonegeo.resolver.resolve import Resolution, resolve_detailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotateSummary:
    rows: int
    exact: int
    fallback: int
    unmatched: int
    skipped: int
    output_path: Path


def _row_point(row: list[str], line_no: int) -> tuple[float, float]:
    if len(row) < 2:
        raise InvalidCoordinate(f"line {line_no}: expected lon,lat columns, got {row!r}")
    try:
        return as_point((float(row[0]), float(row[1])))
    except (ValueError, InvalidCoordinate) as exc:
        raise InvalidCoordinate(f"line {line_no}: invalid coordinate {row[0]!r},{row[1]!r}") from exc


def resolve_rows(
    rows: list[list[str]],
    index: ZoneIndex,
    *,
    max_fallback_distance_km: float,
    workers: int = 1,
    skip_invalid: bool = False,
    line_numbers: list[int] | None = None,
) -> list[Resolution | None]:
    """Resolve every data row. `None` marks a skipped (invalid) row.

    `line_numbers` are the file lines of `rows`, used in error messages
    (defaults to a header on line 1 and no blank lines).

    Raises:
        InvalidCoordinate: On the first invalid row, unless `skip_invalid` is set.
    """
    points: list[tuple[float, float] | None] = []
    if line_numbers is None:
        line_numbers = list(range(2, len(rows) + 2))
    for row, line_no in zip(rows, line_numbers):
        try:
            points.append(_row_point(row, line_no))
        except InvalidCoordinate as exc:
            if not skip_invalid:
                raise
            logger.warning("Skipping row: %s", exc)
            points.append(None)

    def _one(point: tuple[float, float] | None) -> Resolution | None:
        if point is None:
            return None
        return resolve_detailed(point, index, max_fallback_distance_km=max_fallback_distance_km)

    if workers <= 1:
        return [_one(p) for p in points]
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="zonegeo-resolve") as pool:
        return list(pool.map(_one, points))


def annotate_csv(
    input_path: str | Path,
    index: ZoneIndex,
    *,
    max_fallback_distance_km: float,
    output_path: str | Path | None = None,
    zone_column: str = "zone",
    workers: int = 1,
    skip_invalid: bool = False,
) -> AnnotateSummary:
    """Annotate `input_path` with a zone column; writes in place unless `output_path` is given."""
    src = Path(input_path)
    dst = Path(output_path) if output_path else src

    with src.open(newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        # Blank lines are dropped, so keep the reader's own line count for messages.
        numbered = [(reader.line_num, row) for row in reader if row]
    if not numbered:
        raise ValueError(f"{src} is empty; expected a header row")

    header = list(numbered[0][1])
    rows = [row for _, row in numbered[1:]]
    if zone_column in header:
        col = header.index(zone_column)
    else:
        header.append(zone_column)
        col = len(header) - 1

    results = resolve_rows(
        rows,
        index,
        max_fallback_distance_km=max_fallback_distance_km,
        workers=workers,
        skip_invalid=skip_invalid,
        line_numbers=[line_no for line_no, _ in numbered[1:]],
    )

    out_rows: list[list[str]] = [header]
    counts = {"exact": 0, "fallback": 0, "none": 0, "skipped": 0}
    for row, res in zip(rows, results):
        out = list(row)
        if len(out) <= col:
            out.extend([""] * (col + 1 - len(out)))
        if res is None:
            counts["skipped"] += 1
            out[col] = ""
        else:
            counts[res.method] += 1
            out[col] = res.zone_id or ""
        out_rows.append(out)

    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.with_suffix(dst.suffix + ".tmp")
    try:
        with tmp.open("w", newline="", encoding="utf-8") as f:
            csv.writer(f, lineterminator="\n").writerows(out_rows)
        tmp.replace(dst)
    finally:
        tmp.unlink(missing_ok=True)

    summary = AnnotateSummary(
        rows=len(rows),
        exact=counts["exact"],
        fallback=counts["fallback"],
        unmatched=counts["none"],
        skipped=counts["skipped"],
        output_path=dst,
    )
    logger.info(
        "Processed %d coordinates (exact=%d fallback=%d unmatched=%d skipped=%d) -> %s",
        summary.rows,
        summary.exact,
        summary.fallback,
        summary.unmatched,
        summary.skipped,
        dst,
    )
    return summary
