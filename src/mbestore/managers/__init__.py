"""Managers for mbestore operations."""

from .base import ManagerContext, find_and_validate
from .branch import BranchManager
from .clone import BranchCloner, CloneResult
from .options import FindOptions, RemoveOptions, UpdateOptions, WriteOptions

__all__ = [
    "ManagerContext",
    "find_and_validate",
    "BranchManager",
    "BranchCloner",
    "CloneResult",
    "FindOptions",
    "RemoveOptions",
    "UpdateOptions",
    "WriteOptions",
]
