"""Shared lookups and context for mbestore managers."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from mbestore.config import ProjectConfig
from mbestore.errors import NotFoundError
from mbestore.events import EventEmitter
from mbestore.infrastructure.document_store import DocumentStore
from mbestore.permissions import PermissionGate, ProjectPermissions
from mbestore.utils.ids import ID_DELIMITER

logger = logging.getLogger(__name__)

# Collection and display name for each lookup kind
_KINDS = {
    "organization": ("organizations", "Organization"),
    "project": ("projects", "Project"),
    "branch": ("branches", "Branch"),
}


def find_and_validate(
    store: DocumentStore, kind: str, uid: str, allow_archived: bool = False
) -> Dict[str, Any]:
    """Find an organization, project or branch by its full ID.

    Args:
        store: Document store to query
        kind: One of organization, project, branch
        uid: Fully-qualified ID
        allow_archived: Whether an archived document counts as found

    Returns:
        The stored document

    Raises:
        NotFoundError: If the document does not exist, or is archived and
            ``allow_archived`` is False
    """
    collection, name = _KINDS[kind]
    leaf = uid.split(ID_DELIMITER)[-1]
    document = store.find_one(collection, {"_id": uid})

    if document is None:
        logger.debug(f"Find query on {uid} failed")
        raise NotFoundError(f"The {name} [{leaf}] was not found.", "warn")

    if document.get("archived") and not allow_archived:
        raise NotFoundError(
            f"The {name} [{leaf}] is archived. It must first be unarchived "
            f"before performing this operation.",
            "warn",
        )

    return document


@dataclass
class ManagerContext:
    """Services shared by every manager working on one store.

    Attributes:
        store: Document store
        config: Project configuration (ID rules, root branches)
        events: Event emitter for domain events
        permissions: Permission gate
    """

    store: DocumentStore
    config: ProjectConfig = field(default_factory=ProjectConfig)
    events: EventEmitter = field(default_factory=EventEmitter)
    permissions: PermissionGate = field(default_factory=ProjectPermissions)
    logger: Optional[logging.Logger] = None

    @property
    def branches(self) -> "BranchManager":
        """Access a BranchManager bound to this context."""
        from mbestore.managers.branch import BranchManager

        return BranchManager(
            self.store,
            config=self.config,
            events=self.events,
            permissions=self.permissions,
            logger=self.logger,
        )
