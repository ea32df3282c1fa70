"""Region lifecycle operations and geospatial lookups."""

import math
from collections.abc import Sequence
from typing import Optional

from pydantic import ValidationError as SchemaValidationError

from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.database.ports import RegionStore, UserStore
from app.models.base import DocumentMeta
from app.models.geographic import Coordinates
from app.models.region import Region
from app.services.consistency import ConsistencyEngine

logger = get_logger()


class RegionService:
    """Manage regions on behalf of their owners."""

    def __init__(
        self,
        regions: RegionStore,
        users: UserStore,
        engine: ConsistencyEngine,
    ):
        self.regions = regions
        self.users = users
        self.engine = engine

    async def _require_user(self, user_id: str) -> None:
        if await self.users.get_by_id(user_id) is None:
            raise NotFoundError("User", user_id)

    @staticmethod
    def _point(latitude: float, longitude: float) -> Coordinates:
        try:
            return Coordinates(latitude=latitude, longitude=longitude)
        except SchemaValidationError as e:
            raise ValidationError(
                f"Invalid point ({latitude}, {longitude}): "
                f"{e.errors()[0]['msg']}"
            ) from e

    async def create(
        self,
        name: str,
        coordinates: Coordinates,
        user_id: str,
        boundary: list[Coordinates] | None = None,
        region_id: str | None = None,
    ) -> Region:
        """Create a region and link it to its owner.

        Raises:
            NotFoundError: If the owner does not exist
            ValidationError: If ``region_id`` is already taken
        """
        await self._require_user(user_id)
        if region_id is not None and await self.regions.get_by_id(region_id):
            raise ValidationError(f"Region already exists: {region_id}")

        region = Region(
            meta=DocumentMeta(id=region_id) if region_id else DocumentMeta(),
            name=name,
            coordinates=coordinates,
            boundary=boundary,
            user=user_id,
        )
        return await self.engine.create_linked_region(region)

    async def update(
        self,
        region_id: str,
        name: str | None = None,
        coordinates: Coordinates | None = None,
        user_id: str | None = None,
        boundary: list[Coordinates] | None = None,
        clear_boundary: bool = False,
    ) -> Region:
        """Apply a partial update, re-linking the region if its owner changes.

        Raises:
            NotFoundError: If the region or the new owner does not exist
        """
        region = await self.regions.get_by_id(region_id)
        if region is None:
            raise NotFoundError("Region", region_id)
        if user_id is not None and user_id != region.user:
            await self._require_user(user_id)

        changes: dict[str, object] = {}
        if name is not None:
            changes["name"] = name
        if coordinates is not None:
            changes["coordinates"] = coordinates
        if user_id is not None:
            changes["user"] = user_id
        if boundary is not None:
            changes["boundary"] = boundary
        elif clear_boundary:
            changes["boundary"] = None

        updated = region.model_copy(update={**changes, "meta": region.meta.touched()})
        return await self.engine.update_linked_region(updated, previous=region)

    async def delete(self, region_id: str) -> bool:
        """Delete a region; False if it does not exist."""
        region = await self.regions.get_by_id(region_id)
        if region is None:
            return False
        return await self.engine.delete_linked_region(region)

    async def get(self, region_id: str) -> Optional[Region]:
        return await self.regions.get_by_id(region_id)

    async def list(self, skip: int = 0, limit: int | None = None) -> Sequence[Region]:
        return await self.regions.get_all(skip=skip, limit=limit)

    async def find_containing_point(
        self, latitude: float, longitude: float
    ) -> Sequence[Region]:
        """Find regions whose point or boundary contains the given point."""
        point = self._point(latitude, longitude)
        regions = await self.regions.find_containing_point(point)
        logger.debug("containing_point_query", matches=len(regions))
        return regions

    async def find_within_distance(
        self,
        latitude: float,
        longitude: float,
        max_distance_meters: float,
        user_id: str | None = None,
    ) -> Sequence[Region]:
        """Find regions within a distance of a point, nearest first.

        Raises:
            ValidationError: If the distance is negative or not finite, or the point
                is invalid
        """
        if not math.isfinite(max_distance_meters):
            raise ValidationError("Maximum distance must be a finite number")
        if max_distance_meters < 0:
            raise ValidationError("Maximum distance must not be negative")
        point = self._point(latitude, longitude)
        regions = await self.regions.find_within_distance(
            point, max_distance_meters, user_id=user_id
        )
        logger.debug(
            "within_distance_query",
            max_distance_meters=max_distance_meters,
            user_id=user_id,
            matches=len(regions),
        )
        return regions
