"""Geographic query utilities for MongoDB 2dsphere indexes.

This is the only place where the canonical (latitude, longitude) order is
converted to and from GeoJSON's [longitude, latitude] order.
"""

from collections.abc import Sequence
from typing import Any

from app.models.geographic import Coordinates

GeoJSON = dict[str, Any]


class GeoQueryBuilder:
    """Builder for GeoJSON geometries and geospatial query documents."""

    @staticmethod
    def point(coordinates: Coordinates) -> GeoJSON:
        """Create a GeoJSON point from coordinates."""
        return {
            "type": "Point",
            "coordinates": [coordinates.longitude, coordinates.latitude],
        }

    @staticmethod
    def coordinates_from_point(geometry: GeoJSON) -> Coordinates:
        """Read coordinates back from a stored GeoJSON point."""
        longitude, latitude = geometry["coordinates"]
        return Coordinates(latitude=latitude, longitude=longitude)

    @staticmethod
    def polygon(boundary: Sequence[Coordinates]) -> GeoJSON:
        """Create a single-ring GeoJSON polygon, closing the ring if needed."""
        ring = [[vertex.longitude, vertex.latitude] for vertex in boundary]
        if ring[0] != ring[-1]:
            ring.append(list(ring[0]))
        return {"type": "Polygon", "coordinates": [ring]}

    @staticmethod
    def boundary_from_polygon(geometry: GeoJSON) -> list[Coordinates]:
        """Read the outer ring of a stored polygon, without the closing vertex."""
        ring = geometry["coordinates"][0]
        if len(ring) > 1 and ring[0] == ring[-1]:
            ring = ring[:-1]
        return [
            Coordinates(latitude=latitude, longitude=longitude)
            for longitude, latitude in ring
        ]

    @classmethod
    def intersects_point(cls, field: str, point: Coordinates) -> dict[str, Any]:
        """Filter documents whose geometry in ``field`` intersects the point."""
        return {field: {"$geoIntersects": {"$geometry": cls.point(point)}}}

    @classmethod
    def near(
        cls,
        field: str,
        point: Coordinates,
        max_distance_meters: float,
    ) -> dict[str, Any]:
        """Filter documents within a distance of the point, nearest first."""
        return {
            field: {
                "$near": {
                    "$geometry": cls.point(point),
                    "$maxDistance": max_distance_meters,
                }
            }
        }
