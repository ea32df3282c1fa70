"""Region domain model and API schemas."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .base import DocumentMeta
from .geographic import Boundary, Coordinates

# Owner field names accepted on input; older clients send "user" when
# creating and "userId" when updating.
OWNER_ALIASES = AliasChoices("user", "userId", "user_id")


class Region(BaseModel):
    """A named place anchored at a point, optionally bounded by a polygon."""

    model_config = ConfigDict(validate_assignment=True)

    meta: DocumentMeta = Field(default_factory=DocumentMeta)
    name: str = Field(..., min_length=1)
    coordinates: Coordinates
    boundary: Boundary | None = None
    user: str = Field(..., min_length=1, description="Owning user identifier")

    @property
    def id(self) -> str:
        return self.meta.id


class RegionCreate(BaseModel):
    """Payload for creating a region."""

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "name": "Downtown",
                "coordinates": [37.7749, -122.4194],
                "user": "65f1c0b2e4b0a1a2b3c4d5e6",
            }
        },
    )

    id: str | None = Field(
        None, min_length=1, description="Optional identifier; generated if absent"
    )
    name: str = Field(..., min_length=1)
    coordinates: Coordinates
    boundary: Boundary | None = Field(
        None, description="Optional polygon ring of at least three vertices"
    )
    user_id: str = Field(..., min_length=1, validation_alias=OWNER_ALIASES)


class RegionUpdate(BaseModel):
    """Payload for updating a region; omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1)
    coordinates: Coordinates | None = None
    boundary: Boundary | None = None
    user_id: str | None = Field(None, min_length=1, validation_alias=OWNER_ALIASES)


class RegionResponse(BaseModel):
    """Region representation returned by the API."""

    id: str
    name: str
    coordinates: Coordinates
    boundary: Boundary | None = None
    user: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, region: Region) -> "RegionResponse":
        return cls(
            id=region.meta.id,
            name=region.name,
            coordinates=region.coordinates,
            boundary=region.boundary,
            user=region.user,
            created_at=region.meta.created_at,
            updated_at=region.meta.updated_at,
        )
