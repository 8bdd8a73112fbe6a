"""Base models for mbestore."""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MBEBaseModel(BaseModel):
    """Base model for non-document entities (inputs, options, config)."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        extra="forbid",  # Strict validation for inputs
    )


class MBEDocument(BaseModel):
    """Base model for entities stored as documents.

    Documents are keyed by their composite ``_id`` and serialized with camelCase
    keys. Includes the audit and archive fields shared by every collection.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    collection: ClassVar[str] = ""
    VALID_POPULATE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "archivedBy",
        "lastModifiedBy",
        "createdBy",
    )
    REFERENCES: ClassVar[Dict[str, str]] = {
        "createdBy": "users",
        "lastModifiedBy": "users",
        "archivedBy": "users",
    }

    id: str = Field(alias="_id", description="Composite identifier")
    custom: Dict[str, Any] = Field(default_factory=dict, description="Custom data")
    created_by: Optional[str] = Field(default=None, description="Creating user")
    last_modified_by: Optional[str] = Field(
        default=None, description="Last user to modify the document"
    )
    archived_by: Optional[str] = Field(default=None, description="Archiving user")
    created_on: datetime = Field(
        default_factory=utc_now, description="Creation timestamp"
    )
    updated_on: Optional[datetime] = Field(
        default=None, description="Last update timestamp"
    )
    archived_on: Optional[datetime] = Field(
        default=None, description="Archive timestamp"
    )
    archived: bool = Field(default=False, description="Whether the document is archived")

    @field_serializer("created_on", "updated_on", "archived_on")
    def serialize_datetime(self, dt: Optional[datetime], _info: Any) -> Optional[str]:
        """Serialize datetime to ISO format."""
        return dt.isoformat() if dt else None

    def to_document(self) -> Dict[str, Any]:
        """Return the stored representation of this entity."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "MBEDocument":
        return cls.model_validate(document)
