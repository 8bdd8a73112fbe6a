"""Tests for the composite identifier codec."""

import pytest

from mbestore.errors import DataFormatError
from mbestore.utils.ids import CompositeID, create_id, leaf_id, parent_id, parse_id


class TestCreateAndParse:
    """Test create_id and parse_id."""

    def test_create_id_joins_segments(self):
        assert create_id("acme", "rocket", "master") == "acme:rocket:master"

    def test_create_id_accepts_list(self):
        assert create_id(["acme", "rocket"]) == "acme:rocket"

    def test_create_id_rejects_non_string(self):
        with pytest.raises(DataFormatError, match="not a string"):
            create_id("acme", 5)

    def test_create_id_rejects_empty_segment(self):
        with pytest.raises(DataFormatError):
            create_id("acme", "")

    def test_parse_id(self):
        assert parse_id("acme:rocket:master:model") == [
            "acme",
            "rocket",
            "master",
            "model",
        ]

    def test_parse_id_requires_delimiter(self):
        with pytest.raises(DataFormatError, match="Invalid UID"):
            parse_id("acme")

    def test_parse_id_requires_string(self):
        with pytest.raises(DataFormatError):
            parse_id(None)

    def test_round_trip(self):
        segments = ["acme", "rocket", "dev", "engine"]
        assert parse_id(create_id(*segments)) == segments

    def test_leaf_and_parent(self):
        assert leaf_id("acme:rocket:dev") == "dev"
        assert parent_id("acme:rocket:dev") == "acme:rocket"


class TestCompositeID:
    """Test the CompositeID value type."""

    def test_accessors(self):
        uid = CompositeID.parse("acme:rocket:dev:engine")

        assert uid.org == "acme"
        assert uid.project == "rocket"
        assert uid.branch == "dev"
        assert uid.element == "engine"
        assert uid.leaf == "engine"
        assert uid.project_id == "acme:rocket"
        assert uid.branch_id == "acme:rocket:dev"
        assert str(uid) == "acme:rocket:dev:engine"

    def test_short_ids_have_no_lower_levels(self):
        uid = CompositeID.parse("acme")

        assert uid.depth == 1
        assert uid.project is None
        assert uid.branch_id is None

    def test_child(self):
        assert str(CompositeID.of("acme", "rocket").child("dev")) == "acme:rocket:dev"

    def test_rebase(self):
        uid = CompositeID.parse("acme:rocket:master:engine")
        assert str(uid.rebase("acme:rocket:dev")) == "acme:rocket:dev:engine"

    def test_rebase_requires_element_id(self):
        with pytest.raises(DataFormatError):
            CompositeID.parse("acme:rocket:master").rebase("acme:rocket:dev")

    def test_too_many_segments(self):
        with pytest.raises(DataFormatError):
            CompositeID.parse("a:b:c:d:e")

    def test_equality(self):
        assert CompositeID.parse("acme:rocket") == CompositeID.of("acme", "rocket")
