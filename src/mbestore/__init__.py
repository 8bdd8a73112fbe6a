"""mbestore - Branch-versioned store for model elements and artifacts."""

from mbestore.core.database import connect
from mbestore.managers.branch import BranchManager
from mbestore.managers.base import ManagerContext

try:
    from importlib.metadata import version
    __version__ = version("mbestore")
except Exception:
    # Package metadata is not available when running from a source tree
    __version__ = "0.1.0"

__all__ = ["connect", "BranchManager", "ManagerContext"]
