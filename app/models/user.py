"""User domain model and API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .base import DocumentMeta
from .geographic import Coordinates


class User(BaseModel):
    """A user with a resolved location and the regions they own.

    ``address`` and ``coordinates`` are always both populated once stored;
    ``regions`` mirrors every region whose owner is this user.
    """

    model_config = ConfigDict(validate_assignment=True)

    meta: DocumentMeta = Field(default_factory=DocumentMeta)
    name: str = Field(..., min_length=1)
    email: EmailStr
    address: str
    coordinates: Coordinates
    regions: list[str] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.meta.id


class UserCreate(BaseModel):
    """Payload for creating a user.

    Exactly one of ``address`` and ``coordinates`` must be provided; the
    other is resolved through geocoding.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "name": "Ada Lovelace",
                "email": "ada@example.com",
                "address": "1600 Amphitheatre Parkway, Mountain View, CA",
            }
        },
    )

    name: str = Field(..., min_length=1, description="Display name")
    email: EmailStr = Field(..., description="Contact e-mail address")
    address: str | None = Field(None, description="Postal address")
    coordinates: Coordinates | None = Field(
        None, description="Location as {latitude, longitude} or [latitude, longitude]"
    )


class UserUpdate(BaseModel):
    """Payload for updating a user; omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1)
    email: EmailStr | None = None
    address: str | None = None
    coordinates: Coordinates | None = None


class UserResponse(BaseModel):
    """User representation returned by the API."""

    id: str
    name: str
    email: str
    address: str
    coordinates: Coordinates
    regions: list[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.meta.id,
            name=user.name,
            email=user.email,
            address=user.address,
            coordinates=user.coordinates,
            regions=list(user.regions),
            created_at=user.meta.created_at,
            updated_at=user.meta.updated_at,
        )
