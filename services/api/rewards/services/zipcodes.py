"""Zip code extraction and distance heuristics.

Distances here are ranking signals only. The default NumericZipDistance is the
absolute difference of the two zips read as integers, which is not a
geographic distance. CoordinateZipDistance uses haversine miles when both zips
are in its coordinate table; it is enabled by pointing ZIP_COORDINATES_PATH
at a JSON file of zip centroids.
"""

import json
import math
import re
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Protocol

from rewards.settings import get_settings

_ZIP_IN_TEXT = re.compile(r"\b\d{5}\b")
_LEADING_ZIP = re.compile(r"^\s*(\d{5})(?:[-\s]?\d{4})?\s*$")

EARTH_RADIUS_MILES = 3959.0

# Added to numeric fallback distances so zips with known coordinates rank first.
UNKNOWN_COORDINATE_PENALTY = 1000.0


def extract_zip(location_text: str | None) -> str | None:
    """Return the first standalone 5-digit run in an address, if any.

    >>> extract_zip("1 Market St, San Francisco, CA 94105")
    '94105'
    """
    if not location_text:
        return None
    match = _ZIP_IN_TEXT.search(location_text)
    return match.group(0) if match else None


def normalize_requested_zip(zip_code: str) -> str | None:
    """Normalize a requested zip ("94105" or "94105-1234") to its 5-digit form."""
    match = _LEADING_ZIP.match(zip_code or "")
    return match.group(1) if match else None


class ZipDistance(Protocol):
    """Ranking distance between two 5-digit zips (smaller is closer)."""

    def __call__(self, zip_a: str, zip_b: str) -> float: ...


class NumericZipDistance:
    """abs(int(zip_a) - int(zip_b))."""

    def __call__(self, zip_a: str, zip_b: str) -> float:
        return float(abs(int(zip_a) - int(zip_b)))


class CoordinateZipDistance:
    """Haversine miles between zip centroids, numeric fallback for unknown zips."""

    def __init__(self, coordinates: Mapping[str, tuple[float, float]]):
        self.coordinates = dict(coordinates)
        self._numeric = NumericZipDistance()

    def __call__(self, zip_a: str, zip_b: str) -> float:
        a = self.coordinates.get(zip_a)
        b = self.coordinates.get(zip_b)
        if a and b:
            return haversine_miles(a[0], a[1], b[0], b[1])
        return self._numeric(zip_a, zip_b) + UNKNOWN_COORDINATE_PENALTY


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@lru_cache(maxsize=4)
def load_zip_coordinates(path: str) -> dict[str, tuple[float, float]]:
    """Read a zip centroid table: {"94105": [37.7864, -122.3892], ...}.

    Entries that are not a 5-digit zip with a [lat, lng] pair are skipped.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected an object of zip -> [lat, lng]")

    coordinates: dict[str, tuple[float, float]] = {}
    for zip_code, point in raw.items():
        if not _LEADING_ZIP.match(str(zip_code)) or not isinstance(point, (list, tuple)) or len(point) != 2:
            continue
        coordinates[str(zip_code).strip()[:5]] = (float(point[0]), float(point[1]))
    return coordinates


def default_zip_distance() -> ZipDistance:
    """Distance used by selection: haversine when a coordinate table is configured."""
    path = get_settings().zip_coordinates_path
    if not path:
        return NumericZipDistance()
    return CoordinateZipDistance(load_zip_coordinates(path))
