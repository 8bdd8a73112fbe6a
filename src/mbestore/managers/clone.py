"""Clone engine copying a branch's elements and artifacts into new branches."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from mbestore.errors import DatabaseError
from mbestore.infrastructure.document_store import DocumentStore
from mbestore.models import Artifact, Element
from mbestore.models.base import utc_now
from mbestore.utils.ids import CompositeID

Document = Dict[str, Any]

# Element fields copied unchanged into the clone
ELEMENT_COPY_FIELDS = (
    "project",
    "name",
    "documentation",
    "type",
    "custom",
    "archived",
    "createdBy",
    "createdOn",
)

ARTIFACT_COPY_FIELDS = (
    "project",
    "filename",
    "location",
    "strategy",
    "size",
    "description",
    "custom",
    "archived",
    "createdBy",
    "createdOn",
)


def _rebase(uid: str, branch_id: str) -> str:
    return str(CompositeID.parse(uid).rebase(branch_id))


def _checked(model, document: Document) -> Document:
    """Run the model's integrity checks on a rewritten copy."""
    try:
        model.from_document(document)
    except ValidationError as e:
        raise DatabaseError(
            f"Invalid copy [{document['_id']}]: {e.errors()[0]['msg']}", "error"
        ) from e
    return document


@dataclass
class CloneResult:
    """Number of documents written by a clone."""

    elements: int = 0
    artifacts: int = 0


class BranchCloner:
    """Copies every element and artifact of a source branch into new branches.

    Each copy is re-keyed into its new branch. Parent references always move
    with it; source/target references move only when they point into the
    branch being cloned, so links into other projects are kept as they are.
    """

    def __init__(self, store: DocumentStore, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def clone(
        self, branch_ids: Sequence[str], source_branch_id: str, user_id: str
    ) -> CloneResult:
        """Clone the source branch's contents into every branch in ``branch_ids``.

        Args:
            branch_ids: Fully-qualified IDs of the (already inserted) new branches
            source_branch_id: Fully-qualified ID of the branch to copy
            user_id: Requesting user, stamped as last modifier

        Returns:
            CloneResult with the inserted counts

        Raises:
            DatabaseError: If the store did not insert every expected document
        """
        now = utc_now().isoformat()
        result = CloneResult()

        elements = self.store.find("elements", {"branch": source_branch_id})
        clones = [
            self.rewrite_element(e, branch_id, source_branch_id, user_id, now)
            for branch_id in branch_ids
            for e in elements
        ]
        result.elements = self.store.insert_many("elements", clones)
        if result.elements != len(branch_ids) * len(elements):
            raise DatabaseError("Not all elements were cloned from branch.", "error")

        artifacts = self.store.find("artifacts", {"branch": source_branch_id})
        if artifacts:
            copies = [
                self.rewrite_artifact(a, branch_id, user_id, now)
                for branch_id in branch_ids
                for a in artifacts
            ]
            result.artifacts = self.store.insert_many("artifacts", copies)
            if result.artifacts != len(branch_ids) * len(artifacts):
                raise DatabaseError(
                    "Not all artifacts were cloned from branch.", "error"
                )

        self.logger.debug(
            f"Cloned {len(elements)} elements and {len(artifacts)} artifacts "
            f"from {source_branch_id} into {len(branch_ids)} branch(es)"
        )
        return result

    @staticmethod
    def _rebase_reference(
        ref: Optional[str], branch_id: str, source_branch_id: str
    ) -> Optional[str]:
        if not ref:
            return None
        uid = CompositeID.parse(ref)
        if uid.branch_id == source_branch_id:
            return str(uid.rebase(branch_id))
        return ref

    def rewrite_element(
        self,
        element: Document,
        branch_id: str,
        source_branch_id: str,
        user_id: str,
        now: str,
    ) -> Document:
        """Build the copy of ``element`` living in ``branch_id``."""
        clone = {field: element.get(field) for field in ELEMENT_COPY_FIELDS}
        parent = element.get("parent")
        clone.update({
            "_id": _rebase(element["_id"], branch_id),
            "branch": branch_id,
            "parent": _rebase(parent, branch_id) if parent else None,
            "source": self._rebase_reference(
                element.get("source"), branch_id, source_branch_id
            ),
            "target": self._rebase_reference(
                element.get("target"), branch_id, source_branch_id
            ),
            "archivedOn": element.get("archivedOn") or None,
            "archivedBy": element.get("archivedBy") or None,
            "lastModifiedBy": user_id,
            "updatedOn": now,
        })
        return _checked(Element, clone)

    def rewrite_artifact(
        self, artifact: Document, branch_id: str, user_id: str, now: str
    ) -> Document:
        """Build the copy of ``artifact`` living in ``branch_id``."""
        clone = {field: artifact.get(field) for field in ARTIFACT_COPY_FIELDS}
        clone.update({
            "_id": _rebase(artifact["_id"], branch_id),
            "branch": branch_id,
            "archivedOn": artifact.get("archivedOn") or None,
            "archivedBy": artifact.get("archivedBy") or None,
            "lastModifiedBy": user_id,
            "updatedOn": now,
        })
        return _checked(Artifact, clone)

    def remove_clones(self, branch_ids: Sequence[str]) -> None:
        """Delete everything written for ``branch_ids``: elements, artifacts, branches."""
        ids = list(branch_ids)
        self.store.delete_many("elements", {"branch": {"$in": ids}})
        self.store.delete_many("artifacts", {"branch": {"$in": ids}})
        self.store.delete_many("branches", {"_id": {"$in": ids}})
        self.logger.info(f"Removed partially created branches: {', '.join(ids)}")
