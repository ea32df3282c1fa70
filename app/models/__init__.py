"""Domain models package."""

from .base import DocumentMeta, new_object_id, utcnow
from .geographic import Boundary, Coordinates
from .region import Region, RegionCreate, RegionResponse, RegionUpdate
from .user import User, UserCreate, UserResponse, UserUpdate

__all__ = [
    "DocumentMeta",
    "new_object_id",
    "utcnow",
    "Boundary",
    "Coordinates",
    "Region",
    "RegionCreate",
    "RegionResponse",
    "RegionUpdate",
    "User",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
]
