"""Tests for mbestore data models."""

import pytest
from pydantic import ValidationError

from mbestore.models import Artifact, Branch, BranchCreate, Element, Project, User, Webhook


class TestModels:
    """Test data models."""

    def test_branch_document(self):
        branch = Branch(id="acme:rocket:dev", project="acme:rocket", source="acme:rocket:master")
        doc = branch.to_document()

        assert doc["_id"] == "acme:rocket:dev"
        assert doc["source"] == "acme:rocket:master"
        assert doc["tag"] is False
        assert doc["archived"] is False
        assert doc["lastModifiedBy"] is None
        assert isinstance(doc["createdOn"], str)

    def test_branch_from_document(self):
        doc = Branch(id="acme:rocket:dev", project="acme:rocket", name="Dev").to_document()

        branch = Branch.from_document(doc)

        assert branch.id == "acme:rocket:dev"
        assert branch.name == "Dev"
        assert branch.created_on.isoformat() == doc["createdOn"]

    def test_branch_outside_project(self):
        with pytest.raises(ValidationError, match="is not part of project"):
            Branch(id="acme:lander:dev", project="acme:rocket")

    def test_element_outside_branch(self):
        with pytest.raises(ValidationError, match="is not part of branch"):
            Element(id="acme:rocket:qa:engine", project="acme:rocket", branch="acme:rocket:dev")

    def test_relationship_needs_both_ends(self):
        with pytest.raises(ValidationError, match="set together"):
            Element(
                id="acme:rocket:dev:link",
                project="acme:rocket",
                branch="acme:rocket:dev",
                source="acme:rocket:dev:a",
            )

    def test_only_root_element_may_lack_parent(self):
        root = Element(id="acme:rocket:dev:model", project="acme:rocket", branch="acme:rocket:dev")
        assert root.parent is None

        with pytest.raises(ValidationError, match="must have a parent"):
            Element(id="acme:rocket:dev:engine", project="acme:rocket", branch="acme:rocket:dev")

    def test_artifact_outside_branch(self):
        with pytest.raises(ValidationError):
            Artifact(id="acme:rocket:qa:blob1", project="acme:rocket", branch="acme:rocket:dev")

    def test_branch_create_is_strict(self):
        with pytest.raises(ValidationError):
            BranchCreate(id="dev", source="master", tag="true")
        with pytest.raises(ValidationError):
            BranchCreate(id="dev", source="master", color="red")

    def test_project_visibility(self):
        with pytest.raises(ValidationError):
            Project(id="acme:rocket", org="acme", visibility="public")

    def test_user_defaults(self):
        user = User(id="alice").to_document()
        assert user["admin"] is False
        assert user["email"] is None

    def test_webhook_defaults(self):
        first = Webhook(reference="acme:rocket:dev")
        second = Webhook()

        assert len(first.id) == 32
        assert first.id != second.id
        assert first.to_document()["type"] == "Outgoing"
        assert second.reference == ""
