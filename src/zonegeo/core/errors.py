"""
Error types.

Every failure the core can surface is a `ZoneGeoError`. The concrete classes also
inherit from the matching builtin (`ValueError` / `RuntimeError`) so callers that
only know the builtin contract keep working.
"""

from __future__ import annotations


class ZoneGeoError(Exception):
    """Base class for all zonegeo failures."""


class InvalidCoordinate(ZoneGeoError, ValueError):
    """A point is missing, non-numeric, non-finite or has too few components."""


class InvalidGeometry(ZoneGeoError, ValueError):
    """A ring, polygon or linestring has too few vertices."""


class InvalidUnit(ZoneGeoError, ValueError):
    """A distance unit outside of `UNIT_FACTORS`."""


class DatasetLoadFailure(ZoneGeoError, RuntimeError):
    """The zone dataset could not be read or parsed."""
