"""Integration tests for full mbestore workflows."""

import shutil
import tempfile
from pathlib import Path

import pytest

from mbestore import connect
from mbestore.core.initializer import ProjectInitializer
from mbestore.events import BRANCHES_CREATED, BRANCHES_DELETED
from mbestore.models import Artifact, Element


class TestFullWorkflow:
    """Test complete branch workflows through a connected project."""

    @pytest.fixture
    def temp_project(self):
        """Create a temporary test project."""
        temp_dir = tempfile.mkdtemp()
        project_path = Path(temp_dir)

        ProjectInitializer(project_path).init_project("acme", "rocket")

        yield project_path

        shutil.rmtree(temp_dir)

    def test_connect_requires_project(self, monkeypatch):
        temp_dir = tempfile.mkdtemp()
        monkeypatch.chdir(temp_dir)
        try:
            with pytest.raises(ValueError):
                connect()
        finally:
            shutil.rmtree(temp_dir)

    def test_branch_lifecycle(self, temp_project):
        ctx = connect(temp_project)
        admin = ctx.store.find_one("users", {"_id": "admin"})
        created, deleted = [], []
        ctx.events.on(BRANCHES_CREATED, created.append)
        ctx.events.on(BRANCHES_DELETED, deleted.append)

        # Step 1: add model content and an artifact on master
        ctx.store.insert_many(
            "elements",
            [
                Element(
                    id="acme:rocket:master:engine",
                    project="acme:rocket",
                    branch="acme:rocket:master",
                    parent="acme:rocket:master:model",
                    name="engine",
                ).to_document()
            ],
        )
        ctx.store.insert_many(
            "artifacts",
            [
                Artifact(
                    id="acme:rocket:master:spec-sheet",
                    project="acme:rocket",
                    branch="acme:rocket:master",
                    filename="spec.pdf",
                ).to_document()
            ],
        )

        # Step 2: branch master into a feature branch and tag it
        ctx.branches.create(admin, "acme", "rocket", {"id": "feature", "source": "master"})
        ctx.branches.create(
            admin, "acme", "rocket", {"id": "v1", "source": "feature", "tag": True}
        )
        assert len(created) == 2
        assert ctx.store.count("elements", {"branch": "acme:rocket:v1"}) == 5
        assert ctx.store.count("artifacts", {"branch": "acme:rocket:v1"}) == 1

        # Step 3: branches are independent copies
        ctx.store.bulk_update("elements", [("acme:rocket:feature:engine", {"name": "rotor"})])
        master_engine = ctx.store.find_one("elements", {"_id": "acme:rocket:master:engine"})
        assert master_engine["name"] == "engine"

        # Step 4: archive the tag, then find it only when asked
        ctx.branches.update(admin, "acme", "rocket", {"id": "v1", "archived": True})
        live = ctx.branches.find(admin, "acme", "rocket")
        assert {b["_id"] for b in live} == {"acme:rocket:master", "acme:rocket:feature"}

        tags = ctx.branches.find(admin, "acme", "rocket", options={"tag": True, "archived": True})
        assert [b["_id"] for b in tags] == ["acme:rocket:v1"]

        # Step 5: delete the feature branch and its contents
        ctx.branches.remove(admin, "acme", "rocket", "feature")
        assert deleted == [["acme:rocket:feature"]]
        assert ctx.store.count("elements", {"branch": "acme:rocket:feature"}) == 0
        assert ctx.store.count("elements", {"branch": "acme:rocket:v1"}) == 5

    def test_context_uses_project_config(self, temp_project):
        ctx = connect(temp_project)

        assert ctx.config.active_org == "acme"
        assert ctx.branches.root_branches == ("master",)
