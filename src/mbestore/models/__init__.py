"""Core data models for mbestore."""

from .base import MBEBaseModel, MBEDocument, utc_now
from .project import Organization, Project, User, Webhook
from .branch import Branch, BranchCreate
from .element import Element, Artifact

__all__ = [
    "MBEBaseModel",
    "MBEDocument",
    "utc_now",
    "Organization",
    "Project",
    "User",
    "Webhook",
    "Branch",
    "BranchCreate",
    "Element",
    "Artifact",
]
