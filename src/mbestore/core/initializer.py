"""Project initialization for mbestore."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from mbestore.config import Config, ProjectConfig
from mbestore.errors import DataFormatError, OperationError
from mbestore.infrastructure.document_store import DocumentStore
from mbestore.infrastructure.store_connection_pool import get_store
from mbestore.models import Branch, Element, Organization, Project, User
from mbestore.models.base import utc_now
from mbestore.models.element import ROOT_ELEMENT
from mbestore.utils.ids import create_id
from mbestore.utils.validators import IDRules

logger = logging.getLogger(__name__)

ROOT_BRANCH = "master"
OWNER_PERMISSIONS = ["read", "write", "admin"]

# (leaf ID, name, parent leaf ID) of the elements every project starts with
ROOT_ELEMENTS = (
    (ROOT_ELEMENT, "Model", None),
    ("__mbee__", "__mbee__", ROOT_ELEMENT),
    ("holding_bin", "holding bin", "__mbee__"),
    ("undefined", "undefined element", "__mbee__"),
)


def _ensure_absent(store: DocumentStore, collection: str, uid: str, kind: str) -> None:
    if store.find_one(collection, {"_id": uid}, fields=["_id"]) is not None:
        raise OperationError(f"{kind} [{uid}] already exists.", "warn")


def create_user(
    store: DocumentStore, username: str, admin: bool = False, **fields: Any
) -> Dict[str, Any]:
    """Create a user document; the username is its ID."""
    if not isinstance(username, str) or not username:
        raise DataFormatError("Username must be a non-empty string.", "warn")
    _ensure_absent(store, "users", username, "User")

    user = User(id=username, admin=admin, created_by=username, **fields).to_document()
    store.insert_many("users", [user])
    return user


def create_organization(
    store: DocumentStore,
    user: Dict[str, Any],
    org_id: str,
    name: str = "",
    rules: Optional[IDRules] = None,
) -> Dict[str, Any]:
    """Create an organization owned by ``user``."""
    (rules or IDRules()).validate_id(org_id, "organization")
    _ensure_absent(store, "organizations", org_id, "Organization")

    org = Organization(
        id=org_id,
        name=name or org_id,
        permissions={user["_id"]: list(OWNER_PERMISSIONS)},
        created_by=user["_id"],
        last_modified_by=user["_id"],
    ).to_document()
    store.insert_many("organizations", [org])
    return org


def create_project(
    store: DocumentStore,
    user: Dict[str, Any],
    org_id: str,
    project_id: str,
    name: str = "",
    visibility: str = "private",
    rules: Optional[IDRules] = None,
) -> Dict[str, Any]:
    """Create a project with its root branch and root elements.

    Args:
        store: Document store
        user: Creating user document
        org_id: Owning organization ID (must exist)
        project_id: Project leaf ID
        name: Display name, defaults to the ID
        visibility: private or internal
        rules: ID rules, defaults to the built-in grammar

    Returns:
        The project document
    """
    project_uid = create_id(org_id, project_id)
    (rules or IDRules()).validate_id(project_uid, "project")
    if store.find_one("organizations", {"_id": org_id}, fields=["_id"]) is None:
        raise OperationError(f"Organization [{org_id}] does not exist.", "warn")
    _ensure_absent(store, "projects", project_uid, "Project")

    user_id = user["_id"]
    now = utc_now()
    audit = {
        "created_by": user_id,
        "last_modified_by": user_id,
        "created_on": now,
        "updated_on": now,
    }

    project = Project(
        id=project_uid,
        org=org_id,
        name=name or project_id,
        visibility=visibility,
        permissions={user_id: list(OWNER_PERMISSIONS)},
        **audit,
    ).to_document()

    branch_uid = create_id(project_uid, ROOT_BRANCH)
    branch = Branch(
        id=branch_uid, project=project_uid, name=ROOT_BRANCH, source=None, **audit
    ).to_document()

    elements: List[Dict[str, Any]] = [
        Element(
            id=create_id(branch_uid, leaf),
            project=project_uid,
            branch=branch_uid,
            parent=create_id(branch_uid, parent) if parent else None,
            name=elem_name,
            **audit,
        ).to_document()
        for leaf, elem_name, parent in ROOT_ELEMENTS
    ]

    store.insert_many("projects", [project])
    store.insert_many("branches", [branch])
    store.insert_many("elements", elements)

    logger.info(f"Created project {project_uid} with branch {ROOT_BRANCH}")
    return project


class ProjectInitializer:
    """Handles initialization of mbestore projects."""

    def __init__(self, project_dir: Optional[Path] = None):
        """Initialize the project initializer.

        Args:
            project_dir: Path to project directory. If None, uses current directory.
        """
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.config_dir = self.project_dir / ".mbestore"
        self.config_path = self.config_dir / "config.toml"

    def init_project(
        self, org_id: str, project_id: str, username: str = "admin"
    ) -> ProjectConfig:
        """Initialize a new project directory with a store and default config.

        Creates the admin user, the organization and the project (with its
        master branch and root elements).

        Returns:
            The created ProjectConfig

        Raises:
            FileExistsError: If a project already exists at the location
            DataFormatError: If an ID is invalid
        """
        if self.config_path.exists():
            raise FileExistsError(f"Project already exists at {self.config_dir}")

        config = ProjectConfig(
            active_org=org_id, active_project=project_id, active_user=username
        )
        rules = config.ids.rules()
        rules.validate_id(org_id, "organization")
        rules.validate_id(create_id(org_id, project_id), "project")

        self.config_dir.mkdir(parents=True, exist_ok=True)

        Config(self.project_dir).save(config)

        store = get_store(self.config_dir / config.store_file)
        user = create_user(store, username, admin=True)
        create_organization(store, user, org_id, rules=rules)
        create_project(store, user, org_id, project_id, rules=rules)

        return config
