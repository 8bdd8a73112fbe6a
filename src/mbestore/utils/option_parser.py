"""Parse string-valued options (query strings, CLI flags) into typed values."""

from typing import Any, Dict, Mapping, Optional

from mbestore.errors import DataFormatError

# Option name to the type its string value is converted to
BRANCH_FIND_OPTIONS = {
    "populate": "array",
    "fields": "array",
    "limit": "number",
    "skip": "number",
    "sort": "string",
    "includeArchived": "boolean",
    "archived": "boolean",
    "tag": "boolean",
    "source": "string",
    "name": "string",
    "createdBy": "string",
    "lastModifiedBy": "string",
    "archivedBy": "string",
}

BRANCH_WRITE_OPTIONS = {
    "populate": "array",
    "fields": "array",
    "includeArchived": "boolean",
}


def parse_options(
    options: Optional[Mapping[str, str]], valid_options: Dict[str, str]
) -> Dict[str, Any]:
    """Convert string option values to the declared types.

    ``custom.*`` keys are passed through as strings.

    Args:
        options: Raw string options
        valid_options: Option name to one of boolean, array, string, number

    Returns:
        Dict of converted options

    Raises:
        DataFormatError: On an unknown option or a non-numeric number
    """
    if not options:
        return {}

    parsed: Dict[str, Any] = {}
    for key, value in options.items():
        if key.startswith("custom."):
            parsed[key] = value
            continue

        kind = valid_options.get(key)
        if kind is None:
            raise DataFormatError(f"Invalid parameter: {key}", "warn")

        if kind == "boolean":
            if value == "true":
                parsed[key] = True
            elif value == "false":
                parsed[key] = False
            else:
                raise DataFormatError(f"{value} is not a boolean", "warn")
        elif kind == "array":
            parsed[key] = value.split(",") if "," in value else [value]
        elif kind == "number":
            try:
                parsed[key] = int(value, 10)
            except ValueError:
                raise DataFormatError(f"{value} is not a number", "warn")
        else:
            parsed[key] = value

    return parsed
