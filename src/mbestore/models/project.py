"""Organization, project, user and webhook models for mbestore."""

import uuid
from typing import Any, ClassVar, Dict, List, Literal, Optional
from pydantic import Field
from .base import MBEDocument


class Organization(MBEDocument):
    """Represents an organization."""

    collection: ClassVar[str] = "organizations"

    name: str = Field(default="", description="Organization name")
    permissions: Dict[str, List[str]] = Field(
        default_factory=dict, description="Permissions by username"
    )


class Project(MBEDocument):
    """Represents a project within an organization."""

    collection: ClassVar[str] = "projects"

    org: str = Field(description="Owning organization ID")
    name: str = Field(default="", description="Project name")
    visibility: Literal["private", "internal"] = Field(
        default="private", description="Who can read the project"
    )
    permissions: Dict[str, List[str]] = Field(
        default_factory=dict, description="Permissions by username"
    )


class User(MBEDocument):
    """A user; the ID is the username."""

    collection: ClassVar[str] = "users"

    admin: bool = Field(default=False, description="System-wide admin")
    fname: str = Field(default="", description="First name")
    lname: str = Field(default="", description="Last name")
    email: Optional[str] = Field(default=None, description="Email address")


class Webhook(MBEDocument):
    """A webhook registered on the server, an org, a project or a branch."""

    collection: ClassVar[str] = "webhooks"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, alias="_id")
    name: str = Field(default="", description="Webhook name")
    type: Literal["Outgoing", "Incoming"] = Field(default="Outgoing")
    triggers: List[str] = Field(default_factory=list, description="Trigger events")
    reference: str = Field(
        default="", description="Org, project or branch ID; empty for server level"
    )
    response: Optional[Dict[str, Any]] = Field(
        default=None, description="Outgoing request definition"
    )
