"""Cross-entity consistency rules for users and regions.

Two rules are enforced here:

- A user's location is supplied either as an address or as coordinates, never
  both, and the missing half is resolved through the geocoder.
- Every region id appears exactly once in its owner's ``regions`` list. The
  region write and the owner link run as one unit: inside a transaction when
  the store supports it, otherwise with compensating writes that undo the
  completed steps in reverse order.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import partial
from typing import Any, Optional, Protocol

from app.core.exceptions import NotFoundError, ResolutionError, ValidationError
from app.core.logging import get_logger
from app.core.metrics import REGION_LINK_ROLLBACKS
from app.database.ports import RegionStore, Session, TransactionManager, UserStore
from app.models.geographic import Coordinates
from app.models.region import Region

logger = get_logger()

Undo = Callable[[], Awaitable[Any]]

LOCATION_REQUIRED_MESSAGE = (
    "You must provide either address or coordinates, but not both or none."
)


class Geocoder(Protocol):
    """Blocking address/coordinate resolver."""

    def forward(self, address: str) -> Optional[Coordinates]: ...

    def reverse(self, coordinates: Coordinates) -> Optional[str]: ...


@dataclass(frozen=True)
class ResolvedLocation:
    """A location with both halves populated."""

    address: str
    coordinates: Coordinates


class ConsistencyEngine:
    """Keeps users and their regions mutually consistent."""

    def __init__(
        self,
        geocoder: Geocoder,
        users: UserStore,
        regions: RegionStore,
        transactions: TransactionManager,
    ):
        self.geocoder = geocoder
        self.users = users
        self.regions = regions
        self.transactions = transactions

    async def resolve_location(
        self,
        address: str | None = None,
        coordinates: Coordinates | None = None,
    ) -> ResolvedLocation:
        """Fill in the missing half of a location.

        Raises:
            ValidationError: Unless exactly one of address and coordinates is given
            ResolutionError: If the geocoder fails or finds nothing
        """
        address = address.strip() if address else None
        if bool(address) == (coordinates is not None):
            raise ValidationError(LOCATION_REQUIRED_MESSAGE)

        # The geocoder blocks on HTTP; keep it off the event loop
        loop = asyncio.get_running_loop()
        if coordinates is None:
            resolved = await loop.run_in_executor(
                None, self.geocoder.forward, address
            )
            if resolved is None:
                raise ResolutionError(
                    f"Unable to resolve coordinates for address '{address}'"
                )
            logger.info("location_resolved", direction="forward")
            return ResolvedLocation(address=address, coordinates=resolved)

        resolved_address = await loop.run_in_executor(
            None, self.geocoder.reverse, coordinates
        )
        if not resolved_address:
            raise ResolutionError(
                "Unable to resolve an address for coordinates "
                f"({coordinates.latitude}, {coordinates.longitude})"
            )
        logger.info("location_resolved", direction="reverse")
        return ResolvedLocation(address=resolved_address, coordinates=coordinates)

    async def link_region_to_owner(
        self, region_id: str, owner_id: str, session: Session = None
    ) -> None:
        """Record a region in its owner's list, at most once.

        Raises:
            NotFoundError: If the owner does not exist
        """
        if not await self.users.add_region(owner_id, region_id, session=session):
            raise NotFoundError("User", owner_id)
        logger.debug("region_linked", region_id=region_id, user_id=owner_id)

    async def unlink_region_from_owner(
        self, region_id: str, owner_id: str, session: Session = None
    ) -> bool:
        """Drop a region from its owner's list; False if nothing changed."""
        removed = await self.users.remove_region(owner_id, region_id, session=session)
        logger.debug(
            "region_unlinked", region_id=region_id, user_id=owner_id, removed=removed
        )
        return removed

    @asynccontextmanager
    async def _atomic(
        self, operation: str
    ) -> AsyncIterator[tuple[Session, list[Undo]]]:
        """Run a group of writes as one unit.

        Yields the transaction session (None without transactions) and an undo
        list. Each completed step appends its inverse; on failure outside a
        transaction the inverses run newest first before the error propagates.
        """
        undo: list[Undo] = []
        async with self.transactions.transaction() as session:
            try:
                yield session, undo
            except Exception as exc:
                REGION_LINK_ROLLBACKS.inc()
                logger.warning(
                    "region_rollback",
                    operation=operation,
                    transactional=session is not None,
                    error=str(exc),
                )
                if session is None:
                    await self._compensate(operation, undo)
                raise

    async def _compensate(self, operation: str, undo: list[Undo]) -> None:
        for step in reversed(undo):
            try:
                await step()
            except Exception as rollback_error:
                # Keep undoing; the original error is what the caller sees
                logger.error(
                    "region_rollback_step_failed",
                    operation=operation,
                    error=str(rollback_error),
                )

    async def create_linked_region(self, region: Region) -> Region:
        """Store a new region and link it to its owner atomically."""
        async with self._atomic("create_region") as (session, undo):
            await self.regions.create(region, session=session)
            undo.append(partial(self.regions.delete, region.id))
            await self.link_region_to_owner(region.id, region.user, session=session)

        logger.info("region_created", region_id=region.id, user_id=region.user)
        return region

    async def update_linked_region(self, region: Region, previous: Region) -> Region:
        """Replace a region, moving it between owner lists if the owner changed.

        Raises:
            NotFoundError: If the region or the new owner does not exist
        """
        async with self._atomic("update_region") as (session, undo):
            if not await self.regions.replace(region, session=session):
                raise NotFoundError("Region", region.id)
            undo.append(partial(self.regions.replace, previous))

            if region.user != previous.user:
                await self.link_region_to_owner(
                    region.id, region.user, session=session
                )
                undo.append(partial(self.users.remove_region, region.user, region.id))
                await self.unlink_region_from_owner(
                    region.id, previous.user, session=session
                )

        logger.info(
            "region_updated",
            region_id=region.id,
            user_id=region.user,
            owner_changed=region.user != previous.user,
        )
        return region

    async def delete_linked_region(self, region: Region) -> bool:
        """Delete a region and retract it from its owner's list.

        Returns:
            False if the region was already gone
        """
        async with self._atomic("delete_region") as (session, undo):
            if not await self.regions.delete(region.id, session=session):
                return False
            undo.append(partial(self.regions.create, region))
            await self.unlink_region_from_owner(region.id, region.user, session=session)

        logger.info("region_deleted", region_id=region.id, user_id=region.user)
        return True

    async def delete_owner(self, user_id: str) -> bool:
        """Delete a user together with every region they own.

        Returns:
            False if the user does not exist
        """
        async with self._atomic("delete_user") as (session, undo):
            if await self.users.get_by_id(user_id, session=session) is None:
                return False

            owned = await self.regions.get_by_owner(user_id, session=session)
            await self.regions.delete_by_owner(user_id, session=session)
            for region in owned:
                undo.append(partial(self.regions.create, region))

            if not await self.users.delete(user_id, session=session):
                raise NotFoundError("User", user_id)

        logger.info("user_deleted", user_id=user_id, regions_deleted=len(owned))
        return True
