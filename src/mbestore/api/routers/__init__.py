"""API routers for mbestore."""

from . import branches

__all__ = ["branches"]
