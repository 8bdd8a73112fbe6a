"""Branch model for mbestore."""

from typing import Any, ClassVar, Dict, Optional, Tuple
from pydantic import Field, StrictBool, StrictStr, model_validator
from .base import MBEBaseModel, MBEDocument
from ..utils.ids import ID_DELIMITER


class Branch(MBEDocument):
    """Represents a branch within a project.

    A branch is an independent copy of its source branch's elements and
    artifacts taken at creation time. ``source`` records that lineage; it is
    null only for the project's root branch.
    """

    collection: ClassVar[str] = "branches"
    VALID_UPDATE_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "custom", "archived")
    VALID_POPULATE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "archivedBy",
        "lastModifiedBy",
        "createdBy",
        "project",
        "source",
    )
    # Reference fields and the collection they point at
    REFERENCES: ClassVar[Dict[str, str]] = {
        "project": "projects",
        "source": "branches",
        "createdBy": "users",
        "lastModifiedBy": "users",
        "archivedBy": "users",
    }

    project: str = Field(description="Owning project ID")
    name: str = Field(default="", description="Branch name")
    source: Optional[str] = Field(
        default=None, description="Branch this branch was cloned from"
    )
    tag: bool = Field(default=False, description="Whether the branch is a tag")

    @model_validator(mode="after")
    def check_project_prefix(self) -> "Branch":
        """The branch ID must live under its project."""
        if not self.id.startswith(self.project + ID_DELIMITER):
            raise ValueError(
                f"Branch ID [{self.id}] is not part of project [{self.project}]"
            )
        return self


class BranchCreate(MBEBaseModel):
    """Input for creating a branch. ``id`` and ``source`` are leaf IDs."""

    id: StrictStr
    source: StrictStr
    name: StrictStr = ""
    tag: StrictBool = False
    custom: Dict[str, Any] = Field(default_factory=dict)
    archived: StrictBool = False
