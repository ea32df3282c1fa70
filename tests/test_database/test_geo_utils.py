"""Tests for GeoJSON conversion and geospatial query documents."""

from app.database.geo_utils import GeoQueryBuilder
from app.models.geographic import Coordinates

SAN_FRANCISCO = Coordinates(latitude=37.7749, longitude=-122.4194)


def test_point_uses_longitude_latitude_order() -> None:
    """Test GeoJSON points store longitude first."""
    assert GeoQueryBuilder.point(SAN_FRANCISCO) == {
        "type": "Point",
        "coordinates": [-122.4194, 37.7749],
    }


def test_point_round_trip_restores_canonical_order() -> None:
    """Test reading a stored point gives back latitude first."""
    geometry = {"type": "Point", "coordinates": [-122.4194, 37.7749]}
    assert GeoQueryBuilder.coordinates_from_point(geometry) == SAN_FRANCISCO


def test_polygon_closes_open_ring() -> None:
    """Test an open boundary is closed and converted to GeoJSON order."""
    boundary = [
        Coordinates(latitude=0, longitude=0),
        Coordinates(latitude=0, longitude=1),
        Coordinates(latitude=1, longitude=1),
    ]

    polygon = GeoQueryBuilder.polygon(boundary)

    assert polygon["type"] == "Polygon"
    assert polygon["coordinates"] == [[[0, 0], [1, 0], [1, 1], [0, 0]]]


def test_polygon_keeps_closed_ring() -> None:
    """Test an already closed ring is not closed twice."""
    boundary = [
        Coordinates(latitude=0, longitude=0),
        Coordinates(latitude=0, longitude=1),
        Coordinates(latitude=1, longitude=1),
        Coordinates(latitude=0, longitude=0),
    ]
    assert len(GeoQueryBuilder.polygon(boundary)["coordinates"][0]) == 4


def test_boundary_from_polygon_drops_closing_vertex() -> None:
    """Test stored polygons are read back as open rings."""
    geometry = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]}

    boundary = GeoQueryBuilder.boundary_from_polygon(geometry)

    assert boundary == [
        Coordinates(latitude=0, longitude=0),
        Coordinates(latitude=0, longitude=1),
        Coordinates(latitude=1, longitude=1),
    ]


def test_intersects_point_query() -> None:
    """Test $geoIntersects filter document."""
    query = GeoQueryBuilder.intersects_point("location", SAN_FRANCISCO)
    assert query == {
        "location": {
            "$geoIntersects": {
                "$geometry": {"type": "Point", "coordinates": [-122.4194, 37.7749]}
            }
        }
    }


def test_near_query_carries_max_distance() -> None:
    """Test $near filter document uses meters as given."""
    query = GeoQueryBuilder.near("location", SAN_FRANCISCO, 1500.0)
    near = query["location"]["$near"]
    assert near["$maxDistance"] == 1500.0
    assert near["$geometry"]["coordinates"] == [-122.4194, 37.7749]
