"""CLI command modules."""

from . import branch

__all__ = ["branch"]
