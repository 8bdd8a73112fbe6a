"""Core functionality for mbestore."""

from .initializer import (
    ProjectInitializer,
    create_organization,
    create_project,
    create_user,
)

__all__ = [
    "ProjectInitializer",
    "create_organization",
    "create_project",
    "create_user",
]
