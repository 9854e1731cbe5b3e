"""
Route geometry helpers.

Route geometry is a plain polyline built from the stop coordinates, no
path finding or distance computation is involved.
"""

from typing import Iterable, List


def deriveRouteGeometry(stops: Iterable) -> List[List[float]]:
    """
    Build a polyline from stop coordinates, keeping the input order.

    The stops are not sorted by sequence, the caller decides the order.

    Args:
        stops (Iterable): Objects exposing `latitude` and `longitude`.

    Returns:
        List[List[float]]: One `[latitude, longitude]` pair per stop.

    Example:
        >>> deriveRouteGeometry([StopForm(latitude=40.7, longitude=-74.0, ...)])
        [[40.7, -74.0]]
    """
    return [[stop.latitude, stop.longitude] for stop in stops]


def toLineString(polyline: Iterable) -> dict:
    """
    Convert a `[latitude, longitude]` polyline into a GeoJSON LineString.

    GeoJSON orders coordinates longitude first, so each pair is swapped.

    Args:
        polyline (Iterable): Sequence of `[latitude, longitude]` pairs.

    Returns:
        dict: `{"type": "LineString", "coordinates": [[lng, lat], ...]}`
    """
    return {
        "type": "LineString",
        "coordinates": [[longitude, latitude] for latitude, longitude in polyline],
    }
