"""Geographic value types shared by users and regions."""

from collections.abc import Sequence
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator


class Coordinates(BaseModel):
    """Geographic point in canonical (latitude, longitude) order.

    Accepts either an object with ``latitude``/``longitude`` keys or a
    two-element ``[latitude, longitude]`` sequence.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={"example": {"latitude": 37.7749, "longitude": -122.4194}},
    )

    latitude: float = Field(
        ...,
        title="Latitude",
        description="Latitude coordinate",
        examples=[37.7749],
    )
    longitude: float = Field(
        ...,
        title="Longitude",
        description="Longitude coordinate",
        examples=[-122.4194],
    )

    @model_validator(mode="before")
    @classmethod
    def parse_pair(cls, value: Any) -> Any:
        """Convert a ``[latitude, longitude]`` pair into field values."""
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            if len(value) != 2:
                raise ValueError(
                    "Coordinates must be a [latitude, longitude] pair"
                )
            return {"latitude": value[0], "longitude": value[1]}
        return value

    @model_validator(mode="after")
    def validate_coordinates(self) -> "Coordinates":
        """Validate coordinate ranges."""
        if not -90 <= self.latitude <= 90:
            raise ValueError("Latitude must be between -90 and 90 degrees")
        if not -180 <= self.longitude <= 180:
            raise ValueError("Longitude must be between -180 and 180 degrees")
        return self


def validate_boundary(boundary: list[Coordinates]) -> list[Coordinates]:
    """Check that a boundary describes a polygon ring.

    The ring may be given open or closed; a closing vertex equal to the first
    one is not counted.

    Raises:
        ValueError: If fewer than three distinct vertices are given
    """
    vertices = list(boundary)
    if len(vertices) > 1 and vertices[0] == vertices[-1]:
        vertices = vertices[:-1]
    if len(vertices) < 3:
        raise ValueError("Boundary must contain at least three vertices")
    return list(boundary)


Boundary = Annotated[list[Coordinates], AfterValidator(validate_boundary)]
