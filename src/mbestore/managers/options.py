"""Typed options accepted by the branch operations.

Options arrive as plain dictionaries (from the API query string, the CLI or
Python callers) and are validated once into these models. Search filters on
custom data are passed as ``custom.<dot.path>`` keys.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import Field, StrictBool, StrictInt, StrictStr, ValidationError

from mbestore.errors import DataFormatError, OperationError
from mbestore.models.base import MBEBaseModel

CUSTOM_PREFIX = "custom."

T = TypeVar("T", bound="OperationOptions")


def _format_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    loc = ".".join(str(part) for part in first["loc"])
    if first["type"] == "extra_forbidden":
        return f"Invalid option [{loc}]."
    return f"The option '{loc}' is invalid: {first['msg']}."


class OperationOptions(MBEBaseModel):
    """Options shared by every operation."""

    @classmethod
    def from_dict(
        cls: Type[T],
        options: Optional[Dict[str, Any]] = None,
        valid_populate: Sequence[str] = (),
    ) -> T:
        """Validate a raw options dict.

        Raises:
            DataFormatError: On an unknown option or a value of the wrong type
            OperationError: If a populate field cannot be populated
        """
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise DataFormatError("Options must be an object.", "warn")

        data = dict(options)
        custom = {
            key[len(CUSTOM_PREFIX):]: data.pop(key)
            for key in list(data)
            if key.startswith(CUSTOM_PREFIX)
        }
        if custom:
            if "custom" not in cls.model_fields:
                raise DataFormatError(
                    f"Invalid option [{CUSTOM_PREFIX}{next(iter(custom))}].", "warn"
                )
            data["custom"] = custom

        try:
            parsed = cls.model_validate(data)
        except ValidationError as e:
            raise DataFormatError(_format_validation_error(e), "warn") from e

        for name in getattr(parsed, "populate", []):
            if name not in valid_populate:
                raise OperationError(f"The field {name} cannot be populated.", "warn")

        return parsed


class WriteOptions(OperationOptions):
    """Options for create: shape of the returned documents."""

    populate: List[StrictStr] = Field(default_factory=list)
    fields: List[StrictStr] = Field(default_factory=list)

    def projection(self) -> List[str]:
        """Fields projection; ``_id`` can never be excluded."""
        return [f for f in self.fields if f != "-_id"]


class UpdateOptions(WriteOptions):
    """Options for update."""

    include_archived: StrictBool = Field(default=False, alias="includeArchived")


class RemoveOptions(OperationOptions):
    """Remove takes no options; anything passed is rejected."""


class FindOptions(WriteOptions):
    """Options for find: paging, sorting, archive scoping and search filters."""

    limit: StrictInt = Field(default=0, ge=0)
    skip: StrictInt = Field(default=0, ge=0)
    sort: Optional[StrictStr] = None
    include_archived: StrictBool = Field(default=False, alias="includeArchived")
    archived: Optional[StrictBool] = None

    # Search filters
    tag: Optional[StrictBool] = None
    source: Optional[StrictStr] = None
    name: Optional[StrictStr] = None
    created_by: Optional[StrictStr] = Field(default=None, alias="createdBy")
    last_modified_by: Optional[StrictStr] = Field(default=None, alias="lastModifiedBy")
    archived_by: Optional[StrictStr] = Field(default=None, alias="archivedBy")
    custom: Dict[str, StrictStr] = Field(default_factory=dict)

    @property
    def allows_archived(self) -> bool:
        """Whether archived orgs and projects may be searched."""
        return self.include_archived or self.archived is True

    def archive_filter(self) -> Optional[bool]:
        """Value the ``archived`` field must have, or None for no filter.

        ``archived`` wins over ``include_archived``.
        """
        if self.archived is not None:
            return self.archived
        if self.include_archived:
            return None
        return False

    def search_query(self) -> Dict[str, Any]:
        """Search filters as a store query, keyed by document field.

        ``source`` is returned as given; the caller qualifies it.
        """
        filters = {
            "tag": self.tag,
            "source": self.source,
            "name": self.name,
            "createdBy": self.created_by,
            "lastModifiedBy": self.last_modified_by,
            "archivedBy": self.archived_by,
        }
        query = {k: v for k, v in filters.items() if v is not None}
        for path, value in self.custom.items():
            query[f"{CUSTOM_PREFIX}{path}"] = value
        return query

    def sort_spec(self) -> Optional[List[Tuple[str, int]]]:
        if not self.sort:
            return None
        field, order = self.sort, 1
        if field.startswith("-"):
            field, order = field[1:], -1
        if field == "id":
            field = "_id"
        return [(field, order)]
