"""Identifier and field validation for mbestore documents.

Identifiers are validated segment by segment against a single segment
pattern. Field validators are kept in a registry keyed by entity and field so
controllers can check update payloads without knowing the rules themselves.
"""

import re
from typing import Any, Callable, Dict, Iterable, Optional, Union

from mbestore.errors import DataFormatError, ServerError
from mbestore.utils.ids import ID_DELIMITER

# Segment pattern: lowercase letters, numbers, '_' and '-', not starting with '-'
DEFAULT_ID_PATTERN = "[a-z0-9_][a-z0-9_-]*"
DEFAULT_ID_LENGTH = 36

# Keywords that cannot be used as the leaf segment of an ID
RESERVED_KEYWORDS = frozenset({
    "css",
    "js",
    "img",
    "doc",
    "docs",
    "webfonts",
    "login",
    "about",
    "assets",
    "static",
    "public",
    "api",
    "organizations",
    "orgs",
    "projects",
    "users",
    "plugins",
    "ext",
    "extension",
    "search",
    "whoami",
    "profile",
    "edit",
    "proj",
    "elements",
    "branch",
    "anonymous",
    "blob",
    "artifact",
    "artifacts",
})

# Number of segments in the ID of each entity type
ENTITY_DEPTHS = {
    "organization": 1,
    "project": 2,
    "branch": 3,
    "element": 4,
    "artifact": 4,
}

Validator = Union[str, Callable[[Any], bool]]


class IDRules:
    """Identifier grammar for every entity type."""

    def __init__(
        self,
        id_pattern: str = DEFAULT_ID_PATTERN,
        id_length: int = DEFAULT_ID_LENGTH,
        reserved: Optional[Iterable[str]] = None,
    ):
        """Initialize the rules.

        Args:
            id_pattern: Regex (unanchored) a single segment must match
            id_length: Maximum length budget of a single segment
            reserved: Extra reserved keywords on top of the built-in list
        """
        self.id_pattern = id_pattern
        self.id_length = id_length
        self.reserved = RESERVED_KEYWORDS | frozenset(reserved or ())
        self._segment_re = re.compile(id_pattern)
        self._patterns: Dict[str, re.Pattern] = {}

    def pattern(self, entity_type: str) -> re.Pattern:
        """Return the regex a full ID of the entity type must fullmatch."""
        if entity_type not in self._patterns:
            depth = self._depth(entity_type)
            body = ID_DELIMITER.join([f"({self.id_pattern})"] * depth)
            self._patterns[entity_type] = re.compile(body)
        return self._patterns[entity_type]

    def max_length(self, entity_type: str) -> int:
        """Cumulative length bound: one segment budget per level plus delimiters."""
        depth = self._depth(entity_type)
        return depth * self.id_length + (depth - 1) * len(ID_DELIMITER)

    def validate_segment(self, segment: str, entity_type: str = "entity") -> None:
        """Validate a single leaf segment.

        Raises:
            DataFormatError: If the segment is empty, malformed or reserved
        """
        if not isinstance(segment, str) or not segment:
            raise DataFormatError(
                f"{entity_type.capitalize()} ID cannot be empty.", "warn"
            )

        if not self._segment_re.fullmatch(segment):
            raise DataFormatError(
                f"Invalid {entity_type} ID [{segment}]. IDs must contain only "
                f"lowercase letters (a-z), numbers (0-9), '_' and '-', and "
                f"cannot start with '-'.",
                "warn",
            )

        if len(segment) > self.id_length:
            raise DataFormatError(
                f"{entity_type.capitalize()} ID [{segment}] cannot exceed "
                f"{self.id_length} characters.",
                "warn",
            )

        if segment in self.reserved:
            raise DataFormatError(
                f"{entity_type.capitalize()} ID cannot include the following "
                f"words: [{', '.join(sorted(self.reserved))}].",
                "warn",
            )

    def validate_id(self, uid: str, entity_type: str) -> None:
        """Validate a fully-qualified ID of the given entity type.

        Raises:
            DataFormatError: If the ID does not match the grammar, is too long,
                or its leaf is a reserved keyword
        """
        if not isinstance(uid, str):
            raise DataFormatError(f"Invalid {entity_type} ID: not a string.", "warn")

        if len(uid) > self.max_length(entity_type):
            raise DataFormatError(
                f"Too many characters in {entity_type} ID [{uid}].", "warn"
            )

        if not self.pattern(entity_type).fullmatch(uid):
            raise DataFormatError(f"Invalid {entity_type} ID [{uid}].", "warn")

        self.validate_segment(uid.split(ID_DELIMITER)[-1], entity_type)

    def is_valid_id(self, uid: str, entity_type: str) -> bool:
        """Check an ID without raising."""
        try:
            self.validate_id(uid, entity_type)
            return True
        except DataFormatError:
            return False

    def _depth(self, entity_type: str) -> int:
        try:
            return ENTITY_DEPTHS[entity_type]
        except KeyError:
            raise ServerError(f"Unknown entity type [{entity_type}].")


def custom_data_validator(value: Any) -> bool:
    """Custom data must be a JSON object."""
    return isinstance(value, dict)


class ValidatorRegistry:
    """Per-entity, per-field validators.

    A validator is either an anchored regex string or a predicate returning a
    boolean.
    """

    def __init__(self):
        self._validators: Dict[str, Dict[str, Validator]] = {}

    def register(self, entity_type: str, field: str, validator: Validator) -> None:
        self._validators.setdefault(entity_type, {})[field] = validator

    def get(self, entity_type: str, field: str) -> Optional[Validator]:
        return self._validators.get(entity_type, {}).get(field)

    def validate(self, entity_type: str, field: str, value: Any) -> None:
        """Run the validator registered for a field, if any.

        Raises:
            DataFormatError: If the value fails validation
            ServerError: If the registered validator is neither a regex
                string nor a callable
        """
        validator = self.get(entity_type, field)
        if validator is None:
            return

        if isinstance(validator, str):
            valid = isinstance(value, str) and re.search(validator, value) is not None
        elif callable(validator):
            valid = bool(validator(value))
        else:
            raise ServerError(
                f"{entity_type.capitalize()} validator [{field}] is neither a "
                f"function nor a regex string."
            )

        if not valid:
            raise DataFormatError(f"Invalid {field}: [{value}]", "warn")


def default_registry(rules: Optional[IDRules] = None) -> ValidatorRegistry:
    """Build the registry used by the branch controller."""
    rules = rules or IDRules()
    branch_re = rules.pattern("branch")
    element_re = rules.pattern("element")

    def optional_match(pattern: re.Pattern) -> Callable[[Any], bool]:
        return lambda v: v is None or (isinstance(v, str) and bool(pattern.fullmatch(v)))

    registry = ValidatorRegistry()
    registry.register("branch", "name", lambda v: isinstance(v, str))
    registry.register("branch", "custom", custom_data_validator)
    registry.register("branch", "archived", lambda v: isinstance(v, bool))
    registry.register("branch", "source", optional_match(branch_re))
    registry.register("element", "parent", optional_match(element_re))
    registry.register("element", "source", optional_match(element_re))
    registry.register("element", "target", optional_match(element_re))
    registry.register("element", "custom", custom_data_validator)
    registry.register("artifact", "custom", custom_data_validator)
    return registry
