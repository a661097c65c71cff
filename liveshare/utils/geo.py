# liveshare/utils/geo.py
# Coordinate validation helpers

from __future__ import annotations

import math
from typing import Any, Dict, Optional


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """True when lat/lng are finite numbers inside WGS84 bounds."""
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat_f) or math.isnan(lng_f):
        return False
    return -90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0


def make_location(lat: float, lng: float, accuracy: Optional[float] = None) -> Dict[str, Any]:
    """Build the JSON sub-document stored for a party's location."""
    loc: Dict[str, Any] = {"lat": float(lat), "lng": float(lng)}
    if accuracy is not None:
        loc["accuracy"] = float(accuracy)
    return loc


def is_valid_accuracy(accuracy: Any) -> bool:
    """True when accuracy is absent or a finite, non-negative number."""
    if accuracy is None:
        return True
    try:
        value = float(accuracy)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value >= 0
