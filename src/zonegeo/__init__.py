"""Reverse geocoding of lon/lat points into named zones."""
