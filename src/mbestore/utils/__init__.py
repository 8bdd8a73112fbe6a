"""Utility modules for mbestore."""

from mbestore.utils.ids import (
    ID_DELIMITER,
    CompositeID,
    create_id,
    parse_id,
    leaf_id,
    parent_id,
)
from mbestore.utils.validators import (
    IDRules,
    ValidatorRegistry,
    default_registry,
    RESERVED_KEYWORDS,
)

__all__ = [
    "ID_DELIMITER",
    "CompositeID",
    "create_id",
    "parse_id",
    "leaf_id",
    "parent_id",
    "IDRules",
    "ValidatorRegistry",
    "default_registry",
    "RESERVED_KEYWORDS",
]
