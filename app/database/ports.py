"""Persistence ports consumed by the service layer.

Services depend on these protocols rather than on a concrete driver. Every
write accepts an optional ``session``: the handle yielded by
``TransactionManager.transaction()``, or None outside a transaction.
"""

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any, Optional, Protocol

from app.models.geographic import Coordinates
from app.models.region import Region
from app.models.user import User

Session = Any


class UserStore(Protocol):
    """Document store for users."""

    async def get_by_id(self, id: str, session: Session = None) -> Optional[User]: ...

    async def get_all(
        self, skip: int = 0, limit: int | None = None
    ) -> Sequence[User]: ...

    async def create(self, user: User, session: Session = None) -> User: ...

    async def update(self, user: User, session: Session = None) -> bool:
        """Persist every field except the ``regions`` index."""
        ...

    async def delete(self, id: str, session: Session = None) -> bool: ...

    async def add_region(
        self, user_id: str, region_id: str, session: Session = None
    ) -> bool:
        """Append a region id once; False if the user does not exist."""
        ...

    async def remove_region(
        self, user_id: str, region_id: str, session: Session = None
    ) -> bool: ...


class RegionStore(Protocol):
    """Document store for regions, including geospatial lookups."""

    async def get_by_id(
        self, id: str, session: Session = None
    ) -> Optional[Region]: ...

    async def get_all(
        self, skip: int = 0, limit: int | None = None
    ) -> Sequence[Region]: ...

    async def get_by_owner(
        self, user_id: str, session: Session = None
    ) -> Sequence[Region]: ...

    async def create(self, region: Region, session: Session = None) -> Region: ...

    async def replace(self, region: Region, session: Session = None) -> bool: ...

    async def delete(self, id: str, session: Session = None) -> bool: ...

    async def delete_by_owner(self, user_id: str, session: Session = None) -> int: ...

    async def find_containing_point(self, point: Coordinates) -> Sequence[Region]: ...

    async def find_within_distance(
        self,
        point: Coordinates,
        max_distance_meters: float,
        user_id: str | None = None,
    ) -> Sequence[Region]: ...


class TransactionManager(Protocol):
    """Opens an atomic scope spanning both stores."""

    def transaction(self) -> AbstractAsyncContextManager[Session]: ...
