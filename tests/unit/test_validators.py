"""Tests for identifier rules and the field validator registry."""

import pytest

from mbestore.errors import DataFormatError, ServerError
from mbestore.utils.validators import IDRules, ValidatorRegistry, default_registry


class TestIDRules:
    """Test identifier validation."""

    @pytest.fixture
    def rules(self):
        return IDRules()

    def test_valid_ids(self, rules):
        rules.validate_id("acme", "organization")
        rules.validate_id("acme:rocket", "project")
        rules.validate_id("acme:rocket:feature-1", "branch")
        rules.validate_id("acme:rocket:master:_engine", "element")

    @pytest.mark.parametrize(
        "uid",
        ["acme:rocket:Dev", "acme:rocket:-dev", "acme:rocket:dev branch", "acme:rocket"],
    )
    def test_invalid_branch_ids(self, rules, uid):
        with pytest.raises(DataFormatError):
            rules.validate_id(uid, "branch")

    def test_trailing_newline_rejected(self, rules):
        assert not rules.is_valid_id("acme:rocket:dev\n", "branch")
        assert not rules.is_valid_id("acme\n", "organization")
        with pytest.raises(DataFormatError, match="Invalid branch ID"):
            rules.validate_segment("dev\n", "branch")

    def test_reserved_leaf(self, rules):
        with pytest.raises(DataFormatError, match="cannot include"):
            rules.validate_id("acme:rocket:api", "branch")

    def test_reserved_word_allowed_above_leaf(self, rules):
        rules.validate_id("acme:api:dev", "branch")

    def test_segment_too_long(self, rules):
        with pytest.raises(DataFormatError, match="cannot exceed"):
            rules.validate_id("acme:rocket:" + "a" * 37, "branch")

    def test_cumulative_max_length(self, rules):
        assert rules.max_length("organization") == 36
        assert rules.max_length("branch") == 3 * 36 + 2

    def test_custom_length(self):
        rules = IDRules(id_length=4)
        assert rules.is_valid_id("ab:cd", "project")
        assert not rules.is_valid_id("ab:cdefg", "project")

    def test_extra_reserved(self):
        rules = IDRules(reserved=["trunk"])
        assert not rules.is_valid_id("acme:rocket:trunk", "branch")
        assert rules.is_valid_id("acme:rocket:dev", "branch")

    def test_unknown_entity(self, rules):
        with pytest.raises(ServerError):
            rules.validate_id("acme", "widget")


class TestValidatorRegistry:
    """Test the field validator registry."""

    def test_regex_validator(self):
        registry = ValidatorRegistry()
        registry.register("branch", "name", "^[a-z]+$")

        registry.validate("branch", "name", "dev")
        with pytest.raises(DataFormatError, match=r"Invalid name: \[Dev\]"):
            registry.validate("branch", "name", "Dev")

    def test_predicate_validator(self):
        registry = ValidatorRegistry()
        registry.register("branch", "custom", lambda v: isinstance(v, dict))

        registry.validate("branch", "custom", {"a": 1})
        with pytest.raises(DataFormatError):
            registry.validate("branch", "custom", [1])

    def test_invalid_validator_type(self):
        registry = ValidatorRegistry()
        registry.register("branch", "name", 42)

        with pytest.raises(ServerError):
            registry.validate("branch", "name", "dev")

    def test_unregistered_field_passes(self):
        ValidatorRegistry().validate("branch", "anything", object())

    def test_default_registry(self):
        registry = default_registry()

        registry.validate("branch", "archived", False)
        registry.validate("branch", "source", None)
        registry.validate("branch", "source", "acme:rocket:master")
        registry.validate("element", "parent", "acme:rocket:master:model")

        with pytest.raises(DataFormatError):
            registry.validate("branch", "archived", "false")
        with pytest.raises(DataFormatError):
            registry.validate("branch", "name", 7)
        with pytest.raises(DataFormatError):
            registry.validate("element", "target", "acme:rocket:master")
        with pytest.raises(DataFormatError):
            registry.validate("branch", "source", "acme:rocket:master\n")
