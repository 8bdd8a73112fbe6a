"""Element and artifact models for mbestore."""

from typing import ClassVar, Dict, Optional
from pydantic import Field, model_validator
from .base import MBEDocument
from ..utils.ids import ID_DELIMITER


# Leaf ID of the element every branch tree hangs from
ROOT_ELEMENT = "model"


def _owning_branch(uid: str) -> str:
    return ID_DELIMITER.join(uid.split(ID_DELIMITER)[:-1])


class Element(MBEDocument):
    """A node of the model tree inside a branch.

    ``source`` and ``target`` make an element a relationship; they are set
    together or not at all. Only the branch's root element has no parent.
    """

    collection: ClassVar[str] = "elements"
    REFERENCES: ClassVar[Dict[str, str]] = {
        "project": "projects",
        "branch": "branches",
        "parent": "elements",
        "source": "elements",
        "target": "elements",
    }

    project: str = Field(description="Owning project ID")
    branch: str = Field(description="Owning branch ID")
    parent: Optional[str] = Field(default=None, description="Parent element ID")
    source: Optional[str] = Field(default=None, description="Relationship source")
    target: Optional[str] = Field(default=None, description="Relationship target")
    name: str = Field(default="", description="Element name")
    documentation: str = Field(default="", description="Element documentation")
    type: str = Field(default="", description="Element type")

    @model_validator(mode="after")
    def check_integrity(self) -> "Element":
        if _owning_branch(self.id) != self.branch:
            raise ValueError(
                f"Element ID [{self.id}] is not part of branch [{self.branch}]"
            )
        if (self.source is None) != (self.target is None):
            raise ValueError("Element source and target must be set together")
        if self.parent is None and self.id.split(ID_DELIMITER)[-1] != ROOT_ELEMENT:
            raise ValueError(f"Element [{self.id}] must have a parent")
        return self


class Artifact(MBEDocument):
    """Metadata describing a binary blob stored in a branch."""

    collection: ClassVar[str] = "artifacts"

    project: str = Field(description="Owning project ID")
    branch: str = Field(description="Owning branch ID")
    filename: Optional[str] = Field(default=None, description="Blob filename")
    location: Optional[str] = Field(default=None, description="Blob location")
    strategy: Optional[str] = Field(default=None, description="Blob storage strategy")
    size: Optional[int] = Field(default=None, description="Blob size in bytes")
    description: str = Field(default="", description="Artifact description")

    @model_validator(mode="after")
    def check_branch(self) -> "Artifact":
        if _owning_branch(self.id) != self.branch:
            raise ValueError(
                f"Artifact ID [{self.id}] is not part of branch [{self.branch}]"
            )
        return self
