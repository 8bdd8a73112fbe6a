"""Branch management for mbestore."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from mbestore.config import ProjectConfig
from mbestore.errors import (
    AuthorizationError,
    DataFormatError,
    NotFoundError,
    OperationError,
    RollbackError,
)
from mbestore.events import (
    BRANCHES_CREATED,
    BRANCHES_DELETED,
    BRANCHES_UPDATED,
    EventEmitter,
)
from mbestore.infrastructure.document_store import DocumentStore
from mbestore.managers.base import find_and_validate
from mbestore.managers.clone import BranchCloner
from mbestore.managers.options import (
    FindOptions,
    RemoveOptions,
    UpdateOptions,
    WriteOptions,
)
from mbestore.models import Branch, BranchCreate
from mbestore.models.base import utc_now
from mbestore.permissions import Action, PermissionGate, ProjectPermissions
from mbestore.utils.ids import ID_DELIMITER, create_id
from mbestore.utils.validators import ValidatorRegistry, default_registry

Document = Dict[str, Any]
BranchIDs = Union[str, List[str]]

VALID_CREATE_KEYS = ("id", "name", "custom", "source", "tag", "archived")


def _leaf(uid: str) -> str:
    return uid.split(ID_DELIMITER)[-1]


class BranchManager:
    """Manages the branches of one store: find, create (clone), update, remove.

    Every operation takes the requesting user document, an org ID and a
    project ID, and works on branch leaf IDs within that project.
    """

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[ProjectConfig] = None,
        events: Optional[EventEmitter] = None,
        permissions: Optional[PermissionGate] = None,
        logger: Optional[logging.Logger] = None,
        registry: Optional[ValidatorRegistry] = None,
    ):
        """Initialize branch manager.

        Args:
            store: Document store holding orgs, projects, branches and contents
            config: Project configuration (ID rules, root branches)
            events: Emitter receiving branches-created/updated/deleted
            permissions: Permission gate, defaults to ProjectPermissions
            logger: Logger, defaults to this module's logger
            registry: Field validators, defaults to the built-in registry
        """
        self.store = store
        self.config = config or ProjectConfig()
        self.events = events or EventEmitter()
        self.permissions = permissions or ProjectPermissions()
        self.logger = logger or logging.getLogger(__name__)
        self.rules = self.config.ids.rules()
        self.registry = registry or default_registry(self.rules)
        self.cloner = BranchCloner(store, self.logger)

    @property
    def root_branches(self) -> Tuple[str, ...]:
        return tuple(self.config.branches.root_branches)

    def _check_params(self, user: Document, org_id: str, project_id: str) -> None:
        if not isinstance(user, dict) or not user.get("_id"):
            raise AuthorizationError("Requesting user is not defined.", "warn")
        if not isinstance(org_id, str) or not isinstance(project_id, str):
            raise DataFormatError("Organization and project IDs must be strings.", "warn")

    def _find_org_and_project(
        self, org_id: str, project_id: str, allow_archived: bool = False
    ) -> Tuple[Document, Document]:
        org = find_and_validate(self.store, "organization", org_id, allow_archived)
        project = find_and_validate(
            self.store, "project", create_id(org_id, project_id), allow_archived
        )
        return org, project

    def _fetch(self, query: Dict[str, Any], options: WriteOptions, **kwargs) -> List[Document]:
        """Find branches and apply the projection and populate options."""
        documents = self.store.find(
            "branches", query, fields=options.projection(), **kwargs
        )
        if options.populate:
            references = {f: Branch.REFERENCES[f] for f in options.populate}
            self.store.populate(documents, references)
        return documents

    def find(
        self,
        user: Document,
        org_id: str,
        project_id: str,
        branches: Optional[BranchIDs] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[Document]:
        """Find branches of a project.

        Args:
            user: Requesting user document
            org_id: Organization ID
            project_id: Project leaf ID
            branches: None for every branch, or one or many branch leaf IDs
            options: Find options (see FindOptions)

        Returns:
            Matching branch documents

        Raises:
            DataFormatError: On invalid input or options
            NotFoundError: If the org or project does not exist
            PermissionError: If the user cannot read the project
        """
        self._check_params(user, org_id, project_id)
        opts = FindOptions.from_dict(options, Branch.VALID_POPULATE_FIELDS)
        project_uid = create_id(org_id, project_id)

        query: Dict[str, Any] = {"project": project_uid}
        if isinstance(branches, str):
            query["_id"] = create_id(project_uid, branches)
        elif isinstance(branches, list) and all(isinstance(b, str) for b in branches):
            query["_id"] = {"$in": [create_id(project_uid, b) for b in branches]}
        elif branches is not None:
            raise DataFormatError("Invalid input for finding branches.", "warn")

        search = opts.search_query()
        if "source" in search:
            search["source"] = create_id(project_uid, search["source"])
        query.update(search)

        archived = opts.archive_filter()
        if archived is not None:
            query["archived"] = archived

        org, project = self._find_org_and_project(
            org_id, project_id, opts.allows_archived
        )
        self.permissions.check(user, org, project, None, Action.READ)

        return self._fetch(
            query, opts, limit=opts.limit, skip=opts.skip, sort=opts.sort_spec()
        )

    def _validate_create_input(
        self, project_uid: str, specs: Sequence[Any]
    ) -> List[BranchCreate]:
        validated = []
        for index, spec in enumerate(specs, start=1):
            for key in spec:
                if key not in VALID_CREATE_KEYS:
                    raise DataFormatError(f"Invalid key [{key}].", "warn")
            if "id" not in spec:
                raise DataFormatError(f"Branch #{index} does not have an id.", "warn")
            if "source" not in spec:
                raise DataFormatError(f"Branch #{index} does not have a source.", "warn")
            if spec["source"] is None:
                raise DataFormatError(f"Branch #{index}'s source can not be null.", "warn")
            if not isinstance(spec["id"], str):
                raise DataFormatError(f"Branch #{index}'s id is not a string.", "warn")

            try:
                branch = BranchCreate.model_validate(spec)
            except ValidationError as e:
                first = e.errors()[0]
                field = ".".join(str(p) for p in first["loc"])
                raise DataFormatError(
                    f"Branch #{index} has an invalid {field}: {first['msg']}.", "warn"
                ) from e

            self.rules.validate_id(create_id(project_uid, branch.id), "branch")
            validated.append(branch)
        return validated

    def create(
        self,
        user: Document,
        org_id: str,
        project_id: str,
        branches: Union[Document, List[Document]],
        options: Optional[Dict[str, Any]] = None,
    ) -> List[Document]:
        """Create branches by cloning a source branch.

        Every new branch gets a copy of each element and artifact of the
        source branch. If any step after the branches are written fails, the
        partially created branches and their contents are removed and the
        error is re-raised.

        Args:
            user: Requesting user document
            org_id: Organization ID
            project_id: Project leaf ID
            branches: One branch spec or a list of them; every spec must
                name the same ``source``
            options: ``populate`` and ``fields``

        Returns:
            The created branch documents

        Raises:
            DataFormatError: On invalid specs or mixed sources
            NotFoundError: If the org, project or source branch does not exist
            OperationError: If an ID is repeated or already exists
            DatabaseError: If cloning failed
            RollbackError: If cleanup after a failed clone also failed
        """
        self._check_params(user, org_id, project_id)
        if isinstance(branches, dict):
            specs = [branches]
        elif isinstance(branches, list):
            specs = branches
        else:
            raise DataFormatError("Invalid input for creating branches.", "warn")

        if not specs:
            raise DataFormatError("No branches provided for creation.", "warn")
        for index, spec in enumerate(specs, start=1):
            if not isinstance(spec, dict):
                raise DataFormatError(f"Branch #{index} is not an object.", "warn")
        if any(s.get("source") != specs[0].get("source") for s in specs):
            raise DataFormatError(
                "One or more items in branches source field is not the same.", "warn"
            )

        opts = WriteOptions.from_dict(options, Branch.VALID_POPULATE_FIELDS)
        project_uid = create_id(org_id, project_id)
        to_create = self._validate_create_input(project_uid, specs)

        # 1. Qualify IDs, rejecting repeats within the batch
        ids = [create_id(project_uid, b.id) for b in to_create]
        duplicates = [_leaf(uid) for i, uid in enumerate(ids) if uid in ids[:i]]
        if duplicates:
            raise OperationError(
                "Multiple branches with the same ID "
                f"[{','.join(dict.fromkeys(duplicates))}] cannot be created.",
                "warn",
            )

        org, project = self._find_org_and_project(org_id, project_id)
        self.permissions.check(user, org, project, None, Action.CREATE)

        # 2. Qualify the shared source
        source_uid = create_id(project_uid, to_create[0].source)
        if self.store.find_one("branches", {"_id": source_uid}, fields=["_id"]) is None:
            raise NotFoundError(
                f"Branch [{_leaf(source_uid)}] not found in the project [{project_id}].",
                "warn",
            )

        # 3. Stamp audit and archive fields
        user_id = user["_id"]
        now = utc_now()
        documents = [
            Branch(
                id=uid,
                project=project_uid,
                source=source_uid,
                name=spec.name,
                tag=spec.tag,
                custom=spec.custom,
                archived=spec.archived,
                created_by=user_id,
                last_modified_by=user_id,
                created_on=now,
                updated_on=now,
                archived_by=user_id if spec.archived else None,
                archived_on=now if spec.archived else None,
            ).to_document()
            for uid, spec in zip(ids, to_create)
        ]

        # 4. Write the branches; a failed insert writes nothing
        with self.store.lock:
            existing = self.store.find("branches", {"_id": {"$in": ids}}, fields=["_id"])
            if existing:
                raise OperationError(
                    "Branches with the following IDs already exist "
                    f"[{','.join(_leaf(b['_id']) for b in existing)}].",
                    "warn",
                )
            self.store.insert_many("branches", documents)

        # 5-7. Clone contents; undo the branches written above on failure
        try:
            self.cloner.clone(ids, source_uid, user_id)
        except Exception as error:
            try:
                self.cloner.remove_clones(ids)
            except Exception as cleanup_error:
                raise RollbackError(error, cleanup_error) from cleanup_error
            raise

        self.logger.info(
            f"Created branches [{','.join(_leaf(uid) for uid in ids)}] "
            f"from [{_leaf(source_uid)}] in project {project_uid}"
        )
        self.events.emit(BRANCHES_CREATED, documents)

        return self._fetch({"_id": {"$in": ids}}, opts)

    def _build_patch(
        self, user_id: str, branch: Document, changes: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Validate the changes for one branch and return the store patch."""
        leaf = _leaf(branch["_id"])
        if branch.get("archived") and changes != {"archived": False}:
            raise OperationError(
                f"The Branch [{leaf}] is archived. It must first be unarchived "
                f"before performing this operation.",
                "warn",
            )

        patch = dict(changes)
        for key, value in changes.items():
            if key not in Branch.VALID_UPDATE_FIELDS:
                raise OperationError(f"Branch property [{key}] cannot be changed.", "warn")

            self.registry.validate("branch", key, value)

            if key == "archived":
                if value and leaf in self.root_branches:
                    raise OperationError(
                        f"User cannot archive the root branch: {leaf}.", "warn"
                    )
                if value and not branch.get("archived"):
                    patch["archivedBy"] = user_id
                    patch["archivedOn"] = utc_now().isoformat()
                elif not value and branch.get("archived"):
                    patch["archivedBy"] = None
                    patch["archivedOn"] = None

        patch["lastModifiedBy"] = user_id
        patch["updatedOn"] = utc_now().isoformat()
        return patch

    def update(
        self,
        user: Document,
        org_id: str,
        project_id: str,
        branches: Union[Document, List[Document]],
        options: Optional[Dict[str, Any]] = None,
    ) -> List[Document]:
        """Update one or many branches.

        Each item is ``{"id": <leaf id>, <field>: <value>, ...}``. An archived
        branch only accepts ``{"archived": False}``.

        Returns:
            The updated branch documents

        Raises:
            DataFormatError: On invalid input, repeated IDs or invalid values
            NotFoundError: If the org, project or any branch does not exist
            OperationError: On archived branches, root archiving or
                non-updatable fields
        """
        self._check_params(user, org_id, project_id)
        if isinstance(branches, dict):
            items = [branches]
        elif isinstance(branches, list):
            items = branches
        else:
            raise DataFormatError("Invalid input for updating branches.", "warn")

        opts = UpdateOptions.from_dict(options, Branch.VALID_POPULATE_FIELDS)
        project_uid = create_id(org_id, project_id)

        changes: Dict[str, Dict[str, Any]] = {}
        for index, item in enumerate(items, start=1):
            if not isinstance(item, dict):
                raise DataFormatError(f"Branch #{index} is not an object.", "warn")
            if "id" not in item:
                raise DataFormatError(f"Branch #{index} does not have an id.", "warn")
            if not isinstance(item["id"], str):
                raise DataFormatError(f"Branch #{index}'s id is not a string.", "warn")

            uid = create_id(project_uid, item["id"])
            if uid in changes:
                raise DataFormatError(
                    f"Multiple objects with the same ID [{item['id']}] exist in the update.",
                    "warn",
                )
            changes[uid] = {k: v for k, v in item.items() if k not in ("id", "_id")}

        org, project = self._find_org_and_project(
            org_id, project_id, opts.include_archived
        )

        ids = list(changes)
        found = self.store.find("branches", {"_id": {"$in": ids}})
        for branch in found:
            self.permissions.check(user, org, project, branch, Action.UPDATE)

        found_ids = {b["_id"] for b in found}
        missing = [_leaf(uid) for uid in ids if uid not in found_ids]
        if missing:
            raise NotFoundError(
                f"The following branches were not found: [{','.join(missing)}].", "warn"
            )

        user_id = user["_id"]
        updates = [
            (branch["_id"], self._build_patch(user_id, branch, changes[branch["_id"]]))
            for branch in found
        ]
        self.store.bulk_update("branches", updates)

        updated = self._fetch({"_id": {"$in": ids}}, opts)
        self.events.emit(BRANCHES_UPDATED, updated)
        return updated

    def remove(
        self,
        user: Document,
        org_id: str,
        project_id: str,
        branches: BranchIDs,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[str]:
        """Delete branches with their elements, artifacts and webhooks.

        Root branches can never be deleted.

        Returns:
            Fully-qualified IDs of the deleted branches

        Raises:
            DataFormatError: On invalid input
            NotFoundError: If the org, project or any branch does not exist
            OperationError: If a root branch is included
        """
        self._check_params(user, org_id, project_id)
        RemoveOptions.from_dict(options)
        project_uid = create_id(org_id, project_id)

        if isinstance(branches, str):
            ids = [create_id(project_uid, branches)]
        elif isinstance(branches, list) and all(isinstance(b, str) for b in branches):
            ids = [create_id(project_uid, b) for b in branches]
        else:
            raise DataFormatError("Invalid input for removing branches.", "warn")

        org, project = self._find_org_and_project(org_id, project_id)

        found = self.store.find("branches", {"_id": {"$in": ids}})
        for branch in found:
            self.permissions.check(user, org, project, branch, Action.DELETE)

        found_ids = [b["_id"] for b in found]
        missing = [_leaf(uid) for uid in ids if uid not in found_ids]
        if missing:
            raise NotFoundError(
                f"The following branches were not found: [{','.join(missing)}].", "warn"
            )

        for uid in found_ids:
            if _leaf(uid) in self.root_branches:
                raise OperationError(f"User cannot delete branch: {_leaf(uid)}.", "warn")

        owned = {"branch": {"$in": found_ids}}
        self.store.delete_many("elements", owned)
        self.store.delete_many("artifacts", owned)
        self.store.delete_many("webhooks", {"reference": {"$in": found_ids}})
        deleted = self.store.delete_many("branches", {"_id": {"$in": found_ids}})

        if deleted != len(found_ids):
            self.logger.error(
                "Some of the following branches were not deleted "
                f"[{','.join(_leaf(uid) for uid in found_ids)}]."
            )

        self.events.emit(BRANCHES_DELETED, found_ids)
        return found_ids
