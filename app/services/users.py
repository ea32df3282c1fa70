"""User lifecycle operations."""

from collections.abc import Sequence
from typing import Optional

from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.database.ports import UserStore
from app.models.user import User, UserCreate, UserUpdate
from app.services.consistency import ConsistencyEngine

logger = get_logger()


class UserService:
    """Create, update and remove users while keeping their location whole."""

    def __init__(self, users: UserStore, engine: ConsistencyEngine):
        self.users = users
        self.engine = engine

    async def create(self, data: UserCreate) -> User:
        """Create a user from an address or from coordinates.

        Raises:
            ValidationError: Unless exactly one of address and coordinates is given
            ResolutionError: If the missing half cannot be geocoded
        """
        location = await self.engine.resolve_location(data.address, data.coordinates)
        user = User(
            name=data.name,
            email=data.email,
            address=location.address,
            coordinates=location.coordinates,
        )
        await self.users.create(user)
        logger.info("user_created", user_id=user.id)
        return user

    async def update(self, user_id: str, data: UserUpdate) -> User:
        """Apply a partial update.

        A new address or new coordinates replace the whole location. With
        neither, the stored location is kept as is.

        Raises:
            ValidationError: If both address and coordinates are given
            NotFoundError: If the user does not exist
        """
        address = data.address.strip() if data.address else None
        if address and data.coordinates is not None:
            raise ValidationError(
                "You can provide either address or coordinates, but not both."
            )

        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        changes: dict[str, object] = {}
        if data.name is not None:
            changes["name"] = data.name
        if data.email is not None:
            changes["email"] = data.email
        if address or data.coordinates is not None:
            location = await self.engine.resolve_location(address, data.coordinates)
            changes["address"] = location.address
            changes["coordinates"] = location.coordinates

        updated = user.model_copy(update={**changes, "meta": user.meta.touched()})
        if not await self.users.update(updated):
            raise NotFoundError("User", user_id)

        logger.info("user_updated", user_id=user_id, fields=sorted(changes))
        return updated

    async def get(self, user_id: str) -> Optional[User]:
        return await self.users.get_by_id(user_id)

    async def list(self, skip: int = 0, limit: int | None = None) -> Sequence[User]:
        return await self.users.get_all(skip=skip, limit=limit)

    async def delete(self, user_id: str) -> bool:
        """Delete a user and every region they own; False if absent."""
        return await self.engine.delete_owner(user_id)
