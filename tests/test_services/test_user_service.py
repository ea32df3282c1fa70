"""Tests for the user service."""

import pytest

from app.core.exceptions import NotFoundError, ResolutionError, ValidationError
from app.models.geographic import Coordinates
from app.models.user import UserCreate, UserUpdate
from app.services.regions import RegionService
from app.services.users import UserService
from tests.fixtures.stores import FakeGeocoder, InMemoryRegionStore, InMemoryUserStore

SPRINGFIELD = Coordinates(latitude=39.7817, longitude=-89.6501)
LONDON = Coordinates(latitude=51.5237, longitude=-0.1585)


@pytest.mark.asyncio
async def test_create_from_address(
    user_service: UserService, user_store: InMemoryUserStore
) -> None:
    """Test creating a user from an address fills in coordinates."""
    user = await user_service.create(
        UserCreate(name="Ada", email="ada@example.com", address="1 Main St, Springfield")
    )

    assert user.coordinates == SPRINGFIELD
    assert user.regions == []
    assert user_store.documents[user.id] == user


@pytest.mark.asyncio
async def test_create_from_coordinates(user_service: UserService) -> None:
    """Test creating a user from coordinates fills in the address."""
    user = await user_service.create(
        UserCreate(name="Ada", email="ada@example.com", coordinates=[51.5237, -0.1585])
    )

    assert user.address == "221B Baker St, London"
    assert user.coordinates == LONDON


@pytest.mark.asyncio
async def test_create_with_both_is_rejected(
    user_service: UserService, user_store: InMemoryUserStore
) -> None:
    """Test both address and coordinates are rejected without storing."""
    with pytest.raises(ValidationError):
        await user_service.create(
            UserCreate(
                name="Ada",
                email="ada@example.com",
                address="1 Main St, Springfield",
                coordinates=SPRINGFIELD,
            )
        )

    assert user_store.documents == {}


@pytest.mark.asyncio
async def test_create_with_unresolvable_address(
    user_service: UserService, user_store: InMemoryUserStore
) -> None:
    """Test nothing is stored when geocoding finds no match."""
    with pytest.raises(ResolutionError):
        await user_service.create(
            UserCreate(name="Ada", email="ada@example.com", address="Nowhere")
        )

    assert user_store.documents == {}


class TestUpdate:
    """Partial user updates."""

    @pytest.mark.asyncio
    async def test_name_only_keeps_location(
        self, user_service: UserService, fake_geocoder: FakeGeocoder
    ) -> None:
        """Test updating without location fields does not geocode."""
        user = await user_service.create(
            UserCreate(
                name="Ada", email="ada@example.com", address="1 Main St, Springfield"
            )
        )
        fake_geocoder.forward_calls.clear()

        updated = await user_service.update(user.id, UserUpdate(name="Grace"))

        assert updated.name == "Grace"
        assert updated.address == user.address
        assert updated.coordinates == user.coordinates
        assert updated.meta.created_at == user.meta.created_at
        assert updated.meta.updated_at >= user.meta.updated_at
        assert fake_geocoder.forward_calls == []

    @pytest.mark.asyncio
    async def test_new_coordinates_replace_address(
        self, user_service: UserService
    ) -> None:
        """Test new coordinates are reverse geocoded into a new address."""
        user = await user_service.create(
            UserCreate(
                name="Ada", email="ada@example.com", address="1 Main St, Springfield"
            )
        )

        updated = await user_service.update(
            user.id, UserUpdate(coordinates=LONDON)
        )

        assert updated.address == "221B Baker St, London"
        assert updated.coordinates == LONDON

    @pytest.mark.asyncio
    async def test_both_location_fields_rejected(
        self, user_service: UserService
    ) -> None:
        """Test an update with both location halves is rejected."""
        with pytest.raises(ValidationError, match="not both"):
            await user_service.update(
                "anything",
                UserUpdate(address="1 Main St, Springfield", coordinates=SPRINGFIELD),
            )

    @pytest.mark.asyncio
    async def test_missing_user(self, user_service: UserService) -> None:
        """Test updating an unknown user raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await user_service.update("ghost", UserUpdate(name="Grace"))

    @pytest.mark.asyncio
    async def test_update_keeps_region_list(
        self,
        user_service: UserService,
        region_service: RegionService,
        user_store: InMemoryUserStore,
    ) -> None:
        """Test a profile update never drops linked regions."""
        user = await user_service.create(
            UserCreate(
                name="Ada", email="ada@example.com", address="1 Main St, Springfield"
            )
        )
        region = await region_service.create("Home", SPRINGFIELD, user.id)

        await user_service.update(user.id, UserUpdate(name="Grace"))

        assert user_store.documents[user.id].regions == [region.id]


@pytest.mark.asyncio
async def test_list_and_get(user_service: UserService) -> None:
    """Test listing returns users in creation order."""
    first = await user_service.create(
        UserCreate(name="Ada", email="ada@example.com", address="1 Main St, Springfield")
    )
    second = await user_service.create(
        UserCreate(name="Bob", email="bob@example.com", address="221B Baker St, London")
    )

    assert [u.id for u in await user_service.list()] == [first.id, second.id]
    assert [u.id for u in await user_service.list(skip=1, limit=1)] == [second.id]
    assert await user_service.get(first.id) == first
    assert await user_service.get("ghost") is None


@pytest.mark.asyncio
async def test_delete_cascades_to_regions(
    user_service: UserService,
    region_service: RegionService,
    region_store: InMemoryRegionStore,
) -> None:
    """Test deleting a user removes their regions."""
    user = await user_service.create(
        UserCreate(name="Ada", email="ada@example.com", address="1 Main St, Springfield")
    )
    await region_service.create("Home", SPRINGFIELD, user.id)

    assert await user_service.delete(user.id) is True
    assert region_store.documents == {}
    assert await user_service.delete(user.id) is False
