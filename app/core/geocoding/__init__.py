"""Geocoding package: address <-> coordinate resolution."""

from app.core.geocoding.service import GeocodingService, get_geocoding_service

__all__ = [
    "GeocodingService",
    "get_geocoding_service",
]
