"""Allow/deny gate consulted by the branch controller."""

from enum import Enum
from typing import Any, Dict, Optional

from mbestore.errors import PermissionError
from mbestore.utils.ids import ID_DELIMITER


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


Document = Dict[str, Any]


class PermissionGate:
    """Base gate: allows everything."""

    def allowed(
        self,
        user: Document,
        org: Document,
        project: Document,
        branch: Optional[Document],
        action: Action,
    ) -> bool:
        return True

    def check(
        self,
        user: Document,
        org: Document,
        project: Document,
        branch: Optional[Document],
        action: Action,
    ) -> None:
        """Raise PermissionError unless ``user`` may perform ``action``."""
        if self.allowed(user, org, project, branch, action):
            return

        target = branch or project
        leaf = target["_id"].split(ID_DELIMITER)[-1]
        kind = "branch" if branch else "project"
        raise PermissionError(
            f"User does not have permission to {Action(action).value} "
            f"branches on the {kind} [{leaf}].",
            "warn",
        )


class ProjectPermissions(PermissionGate):
    """Permissions computed from the org and project permission maps.

    Admins may do anything. Reading needs ``read`` on the project, or on the
    org when the project is ``internal``. Writing needs ``write`` on the
    project.
    """

    def allowed(self, user, org, project, branch, action) -> bool:
        if user.get("admin"):
            return True

        username = user["_id"]
        if Action(action) == Action.READ:
            if project.get("visibility") == "internal":
                return "read" in org.get("permissions", {}).get(username, [])
            return "read" in project.get("permissions", {}).get(username, [])

        return "write" in project.get("permissions", {}).get(username, [])
