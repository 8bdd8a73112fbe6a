"""Tests for the event emitter and the permission gate."""

import logging

import pytest

from mbestore.errors import PermissionError
from mbestore.events import BRANCHES_CREATED, EventEmitter
from mbestore.permissions import Action, PermissionGate, ProjectPermissions


class TestEventEmitter:
    """Test listener registration and emission."""

    def test_emit_calls_listeners_in_order(self):
        events = EventEmitter()
        calls = []
        events.on(BRANCHES_CREATED, lambda p: calls.append(("first", p)))
        events.on(BRANCHES_CREATED, lambda p: calls.append(("second", p)))

        events.emit(BRANCHES_CREATED, ["a"])

        assert calls == [("first", ["a"]), ("second", ["a"])]

    def test_off(self):
        events = EventEmitter()
        calls = []
        listener = calls.append
        events.on(BRANCHES_CREATED, listener)
        events.off(BRANCHES_CREATED, listener)
        events.off(BRANCHES_CREATED, listener)

        events.emit(BRANCHES_CREATED, "payload")

        assert calls == []
        assert events.listeners(BRANCHES_CREATED) == []

    def test_failing_listener_is_logged(self, caplog):
        events = EventEmitter()
        calls = []

        def broken(payload):
            raise RuntimeError("boom")

        events.on(BRANCHES_CREATED, broken)
        events.on(BRANCHES_CREATED, calls.append)

        with caplog.at_level(logging.ERROR, logger="mbestore.events"):
            events.emit(BRANCHES_CREATED, "payload")

        assert calls == ["payload"]
        assert "boom" in caplog.text


class TestPermissions:
    """Test the default permission gate."""

    @pytest.fixture
    def org(self):
        return {"_id": "acme", "permissions": {"olivia": ["read"]}}

    @pytest.fixture
    def project(self):
        return {
            "_id": "acme:rocket",
            "visibility": "private",
            "permissions": {"reader": ["read"], "writer": ["read", "write"]},
        }

    def test_base_gate_allows_everything(self, org, project):
        PermissionGate().check({"_id": "nobody"}, org, project, None, Action.DELETE)

    def test_admin_allowed(self, org, project):
        gate = ProjectPermissions()
        assert gate.allowed({"_id": "root", "admin": True}, org, project, None, Action.DELETE)

    def test_read_and_write(self, org, project):
        gate = ProjectPermissions()
        reader = {"_id": "reader"}
        writer = {"_id": "writer"}

        assert gate.allowed(reader, org, project, None, Action.READ)
        assert not gate.allowed(reader, org, project, None, Action.CREATE)
        assert gate.allowed(writer, org, project, None, Action.UPDATE)

    def test_internal_project_uses_org_read(self, org, project):
        gate = ProjectPermissions()
        project["visibility"] = "internal"

        assert gate.allowed({"_id": "olivia"}, org, project, None, Action.READ)
        assert not gate.allowed({"_id": "reader"}, org, project, None, Action.READ)

    def test_check_message_names_project(self, org, project):
        with pytest.raises(
            PermissionError,
            match=r"User does not have permission to create branches on the project \[rocket\]",
        ):
            ProjectPermissions().check({"_id": "reader"}, org, project, None, Action.CREATE)

    def test_check_message_names_branch(self, org, project):
        branch = {"_id": "acme:rocket:dev"}
        with pytest.raises(PermissionError, match=r"on the branch \[dev\]"):
            ProjectPermissions().check({"_id": "reader"}, org, project, branch, Action.DELETE)
