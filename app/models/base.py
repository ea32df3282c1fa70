"""Identity and timestamp value object shared by stored documents."""

from datetime import UTC, datetime

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field


def new_object_id() -> str:
    """Generate a new document identifier (24 hex characters)."""
    return str(ObjectId())


def utcnow() -> datetime:
    """Current time in UTC, truncated to MongoDB's millisecond precision."""
    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


class DocumentMeta(BaseModel):
    """Identifier and audit timestamps of a stored document."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=new_object_id,
        title="Identifier",
        description="Unique identifier for this record",
        min_length=1,
        examples=["65f1c0b2e4b0a1a2b3c4d5e6"],
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        title="Created At",
        description="When the record was first stored",
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        title="Updated At",
        description="When the record was last modified",
    )

    def touched(self) -> "DocumentMeta":
        """Return a copy with a fresh ``updated_at``."""
        return self.model_copy(update={"updated_at": utcnow()})
