"""Repository pattern for MongoDB operations."""

import functools
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Generic, Optional, Sequence, TypeVar

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, GEOSPHERE
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from app.core.exceptions import PersistenceError, ValidationError
from app.core.logging import get_logger
from app.models.base import DocumentMeta, utcnow
from app.models.geographic import Coordinates
from app.models.region import Region
from app.models.user import User
from app.database.geo_utils import GeoQueryBuilder
from app.database.ports import Session

logger = get_logger()

ModelType = TypeVar("ModelType")
T = TypeVar("T")

# Server error code for geometries a 2dsphere index cannot ingest
GEO_KEY_EXTRACTION_FAILED = 16755


def translate_errors(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """Re-raise driver errors as domain persistence errors."""

    @functools.wraps(func)
    async def wrapper(self: "BaseRepository[Any]", *args: Any, **kwargs: Any) -> T:
        try:
            return await func(self, *args, **kwargs)
        except PyMongoError as e:
            if isinstance(e, DuplicateKeyError):
                raise ValidationError(
                    f"Duplicate identifier in {self.collection_name}"
                ) from e
            if (
                isinstance(e, OperationFailure)
                and e.code == GEO_KEY_EXTRACTION_FAILED
            ):
                raise ValidationError(f"Invalid geometry: {e}") from e
            logger.error(
                "persistence_error",
                collection=self.collection_name,
                operation=func.__name__,
                error=str(e),
            )
            raise PersistenceError(
                f"{func.__name__} failed on {self.collection_name}: {e}"
            ) from e

    return wrapper


class BaseRepository(ABC, Generic[ModelType]):
    """Base repository for common document operations."""

    collection_name: str

    def __init__(self, database: AsyncIOMotorDatabase):
        self.database = database
        self.collection = database[self.collection_name]

    @abstractmethod
    def to_document(self, instance: ModelType) -> dict[str, Any]:
        """Convert a domain model to its stored document."""

    @abstractmethod
    def from_document(self, document: dict[str, Any]) -> ModelType:
        """Convert a stored document to its domain model."""

    @staticmethod
    def _meta(document: dict[str, Any]) -> DocumentMeta:
        return DocumentMeta(
            id=str(document["_id"]),
            created_at=document["created_at"],
            updated_at=document["updated_at"],
        )

    @translate_errors
    async def get_by_id(
        self, id: str, session: Session = None
    ) -> Optional[ModelType]:
        """Get entity by ID."""
        document = await self.collection.find_one({"_id": id}, session=session)
        return self.from_document(document) if document else None

    @translate_errors
    async def get_all(
        self,
        skip: int = 0,
        limit: int | None = None,
        filters: Optional[dict[str, Any]] = None,
        session: Session = None,
    ) -> Sequence[ModelType]:
        """Get all entities in creation order with optional filtering."""
        cursor = (
            self.collection.find(filters or {}, session=session)
            .sort("created_at", ASCENDING)
            .skip(skip)
        )
        if limit:
            cursor = cursor.limit(limit)
        documents = await cursor.to_list(length=None)
        return [self.from_document(document) for document in documents]

    @translate_errors
    async def create(self, instance: ModelType, session: Session = None) -> ModelType:
        """Insert a new entity."""
        await self.collection.insert_one(self.to_document(instance), session=session)
        return instance

    @translate_errors
    async def delete(self, id: str, session: Session = None) -> bool:
        """Delete entity by ID; False if it did not exist."""
        result = await self.collection.delete_one({"_id": id}, session=session)
        return result.deleted_count > 0

    async def ensure_indexes(self) -> None:
        """Create the indexes this collection relies on."""


class UserRepository(BaseRepository[User]):
    """Repository for user documents."""

    collection_name = "users"

    def to_document(self, instance: User) -> dict[str, Any]:
        return {
            "_id": instance.meta.id,
            "name": instance.name,
            "email": instance.email,
            "address": instance.address,
            "location": GeoQueryBuilder.point(instance.coordinates),
            "regions": list(instance.regions),
            "created_at": instance.meta.created_at,
            "updated_at": instance.meta.updated_at,
        }

    def from_document(self, document: dict[str, Any]) -> User:
        return User(
            meta=self._meta(document),
            name=document["name"],
            email=document["email"],
            address=document["address"],
            coordinates=GeoQueryBuilder.coordinates_from_point(document["location"]),
            regions=[str(region_id) for region_id in document.get("regions", [])],
        )

    @translate_errors
    async def update(self, instance: User, session: Session = None) -> bool:
        """Update profile fields, leaving the ``regions`` index untouched."""
        document = self.to_document(instance)
        for key in ("_id", "regions", "created_at"):
            document.pop(key)
        result = await self.collection.update_one(
            {"_id": instance.meta.id}, {"$set": document}, session=session
        )
        return result.matched_count > 0

    @translate_errors
    async def add_region(
        self, user_id: str, region_id: str, session: Session = None
    ) -> bool:
        """Add a region id to the user's list unless already present."""
        result = await self.collection.update_one(
            {"_id": user_id},
            {"$addToSet": {"regions": region_id}, "$set": {"updated_at": utcnow()}},
            session=session,
        )
        return result.matched_count > 0

    @translate_errors
    async def remove_region(
        self, user_id: str, region_id: str, session: Session = None
    ) -> bool:
        """Remove a region id from the user's list; False if it was not there."""
        result = await self.collection.update_one(
            {"_id": user_id, "regions": region_id},
            {"$pull": {"regions": region_id}, "$set": {"updated_at": utcnow()}},
            session=session,
        )
        return result.modified_count > 0

    @translate_errors
    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("email", ASCENDING)])
        await self.collection.create_index([("location", GEOSPHERE)])


class RegionRepository(BaseRepository[Region]):
    """Repository for region documents with geospatial queries."""

    collection_name = "regions"

    def to_document(self, instance: Region) -> dict[str, Any]:
        document: dict[str, Any] = {
            "_id": instance.meta.id,
            "name": instance.name,
            "user": instance.user,
            "location": GeoQueryBuilder.point(instance.coordinates),
            "created_at": instance.meta.created_at,
            "updated_at": instance.meta.updated_at,
        }
        # A missing field, not null: 2dsphere indexes reject null geometries
        if instance.boundary:
            document["boundary"] = GeoQueryBuilder.polygon(instance.boundary)
        return document

    def from_document(self, document: dict[str, Any]) -> Region:
        boundary = document.get("boundary")
        return Region(
            meta=self._meta(document),
            name=document["name"],
            user=str(document["user"]),
            coordinates=GeoQueryBuilder.coordinates_from_point(document["location"]),
            boundary=(
                GeoQueryBuilder.boundary_from_polygon(boundary) if boundary else None
            ),
        )

    async def get_by_owner(
        self, user_id: str, session: Session = None
    ) -> Sequence[Region]:
        """Get every region owned by a user."""
        return await self.get_all(filters={"user": user_id}, session=session)

    @translate_errors
    async def replace(self, instance: Region, session: Session = None) -> bool:
        """Replace a stored region; False if it does not exist."""
        result = await self.collection.replace_one(
            {"_id": instance.meta.id}, self.to_document(instance), session=session
        )
        return result.matched_count > 0

    @translate_errors
    async def delete_by_owner(self, user_id: str, session: Session = None) -> int:
        """Delete every region owned by a user and return how many went."""
        result = await self.collection.delete_many({"user": user_id}, session=session)
        return result.deleted_count

    @translate_errors
    async def find_containing_point(self, point: Coordinates) -> Sequence[Region]:
        """Find regions whose point or boundary polygon contains the point."""
        query = {
            "$or": [
                GeoQueryBuilder.intersects_point("location", point),
                GeoQueryBuilder.intersects_point("boundary", point),
            ]
        }
        documents = await self.collection.find(query).to_list(length=None)
        return [self.from_document(document) for document in documents]

    @translate_errors
    async def find_within_distance(
        self,
        point: Coordinates,
        max_distance_meters: float,
        user_id: str | None = None,
    ) -> Sequence[Region]:
        """Find regions within a distance of the point, nearest first."""
        query = GeoQueryBuilder.near("location", point, max_distance_meters)
        if user_id is not None:
            query["user"] = user_id
        documents = await self.collection.find(query).to_list(length=None)
        return [self.from_document(document) for document in documents]

    @translate_errors
    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("location", GEOSPHERE)])
        await self.collection.create_index([("boundary", GEOSPHERE)], sparse=True)
        await self.collection.create_index([("user", ASCENDING)])


async def ensure_indexes(database: AsyncIOMotorDatabase) -> None:
    """Create indexes for every collection."""
    for repository in (UserRepository(database), RegionRepository(database)):
        await repository.ensure_indexes()
        logger.info("indexes_ensured", collection=repository.collection_name)
