"""Tests for the branch clone engine."""

import pytest

from mbestore.core.initializer import create_project
from mbestore.errors import DatabaseError
from mbestore.managers.clone import BranchCloner
from mbestore.models import Artifact, Branch, Element

MASTER = "acme:rocket:master"


def _add_branch(store, uid, source=MASTER):
    store.insert_many(
        "branches", [Branch(id=uid, project="acme:rocket", source=source).to_document()]
    )


class TestBranchCloner:
    """Test cloning a branch's contents."""

    @pytest.fixture
    def cloner(self, store, project):
        return BranchCloner(store)

    @pytest.fixture
    def contents(self, store, admin, project):
        """Adds a relationship, a cross-project link and an artifact to master."""
        create_project(store, admin, "acme", "lander")
        store.insert_many(
            "elements",
            [
                Element(
                    id=f"{MASTER}:engine",
                    project="acme:rocket",
                    branch=MASTER,
                    parent=f"{MASTER}:model",
                    name="engine",
                    custom={"thrust": 10},
                ).to_document(),
                Element(
                    id=f"{MASTER}:feeds",
                    project="acme:rocket",
                    branch=MASTER,
                    parent=f"{MASTER}:model",
                    source=f"{MASTER}:engine",
                    target="acme:lander:master:model",
                ).to_document(),
            ],
        )
        store.insert_many(
            "artifacts",
            [
                Artifact(
                    id=f"{MASTER}:drawing",
                    project="acme:rocket",
                    branch=MASTER,
                    filename="drawing.png",
                    size=1024,
                ).to_document()
            ],
        )

    def test_clone_counts(self, store, cloner, contents):
        _add_branch(store, "acme:rocket:dev")
        _add_branch(store, "acme:rocket:qa")

        result = cloner.clone(["acme:rocket:dev", "acme:rocket:qa"], MASTER, "admin")

        assert result.elements == 2 * 6
        assert result.artifacts == 2
        assert store.count("elements", {"branch": "acme:rocket:dev"}) == 6
        assert store.count("artifacts", {"branch": "acme:rocket:qa"}) == 1
        assert store.count("elements", {"branch": MASTER}) == 6

    def test_parent_is_rebased(self, store, cloner, project):
        _add_branch(store, "acme:rocket:dev")
        cloner.clone(["acme:rocket:dev"], MASTER, "admin")

        holding_bin = store.find_one("elements", {"_id": "acme:rocket:dev:holding_bin"})
        assert holding_bin["parent"] == "acme:rocket:dev:__mbee__"
        assert holding_bin["branch"] == "acme:rocket:dev"
        assert holding_bin["project"] == "acme:rocket"

        model = store.find_one("elements", {"_id": "acme:rocket:dev:model"})
        assert model["parent"] is None

    def test_relationship_rebased_independently(self, store, cloner, contents):
        _add_branch(store, "acme:rocket:dev")
        cloner.clone(["acme:rocket:dev"], MASTER, "admin")

        feeds = store.find_one("elements", {"_id": "acme:rocket:dev:feeds"})
        assert feeds["source"] == "acme:rocket:dev:engine"
        assert feeds["target"] == "acme:lander:master:model"

    def test_copied_fields_and_audit(self, store, cloner, contents):
        _add_branch(store, "acme:rocket:dev")
        cloner.clone(["acme:rocket:dev"], MASTER, "alice")

        original = store.find_one("elements", {"_id": f"{MASTER}:engine"})
        engine = store.find_one("elements", {"_id": "acme:rocket:dev:engine"})
        assert engine["custom"] == {"thrust": 10}
        assert engine["createdBy"] == original["createdBy"]
        assert engine["createdOn"] == original["createdOn"]
        assert engine["lastModifiedBy"] == "alice"
        assert engine["updatedOn"] is not None

        drawing = store.find_one("artifacts", {"_id": "acme:rocket:dev:drawing"})
        assert drawing["filename"] == "drawing.png"
        assert drawing["size"] == 1024
        assert drawing["lastModifiedBy"] == "alice"

    def test_no_artifacts_skips_artifact_insert(self, store, cloner, project):
        _add_branch(store, "acme:rocket:dev")
        result = cloner.clone(["acme:rocket:dev"], MASTER, "admin")

        assert result.elements == 4
        assert result.artifacts == 0

    def test_count_mismatch_is_fatal(self, store, cloner, project, monkeypatch):
        _add_branch(store, "acme:rocket:dev")
        monkeypatch.setattr(store, "insert_many", lambda collection, docs: 0)

        with pytest.raises(DatabaseError, match="Not all elements were cloned from branch."):
            cloner.clone(["acme:rocket:dev"], MASTER, "admin")

    def test_invalid_copy_is_fatal(self, store, cloner, project):
        orphan = Element(
            id=f"{MASTER}:orphan",
            project="acme:rocket",
            branch=MASTER,
            parent=f"{MASTER}:model",
        ).to_document()
        orphan["parent"] = None
        store.insert_many("elements", [orphan])
        _add_branch(store, "acme:rocket:dev")

        with pytest.raises(DatabaseError, match="must have a parent"):
            cloner.clone(["acme:rocket:dev"], MASTER, "admin")

        assert store.count("elements", {"branch": "acme:rocket:dev"}) == 0

    def test_remove_clones(self, store, cloner, contents):
        _add_branch(store, "acme:rocket:dev")
        cloner.clone(["acme:rocket:dev"], MASTER, "admin")

        cloner.remove_clones(["acme:rocket:dev"])

        assert store.count("elements", {"branch": "acme:rocket:dev"}) == 0
        assert store.count("artifacts", {"branch": "acme:rocket:dev"}) == 0
        assert store.find_one("branches", {"_id": "acme:rocket:dev"}) is None
        assert store.count("elements", {"branch": MASTER}) == 6
