"""Composite identifier codec.

Every document is keyed by a colon-delimited identifier that encodes its
lineage: ``org``, ``org:project``, ``org:project:branch`` and
``org:project:branch:element``. These helpers move between the local (leaf
only) and fully-qualified forms.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from mbestore.errors import DataFormatError

ID_DELIMITER = ":"
MAX_SEGMENTS = 4


def create_id(*segments: Union[str, Sequence[str]]) -> str:
    """Join segments into a composite identifier.

    Accepts either any number of string arguments or a single list/tuple of
    strings.

    Raises:
        DataFormatError: If a segment is not a non-empty string
    """
    if len(segments) == 1 and isinstance(segments[0], (list, tuple)):
        segments = tuple(segments[0])

    if not segments:
        raise DataFormatError("No segments provided for ID.", "warn")

    for segment in segments:
        if not isinstance(segment, str):
            raise DataFormatError("Argument is not a string.", "warn")
        if not segment:
            raise DataFormatError("ID segments cannot be empty.", "warn")

    return ID_DELIMITER.join(segments)


def parse_id(uid: str) -> List[str]:
    """Split a composite identifier into its segments.

    Raises:
        DataFormatError: If the value is not a string or has no delimiter
    """
    if not isinstance(uid, str) or ID_DELIMITER not in uid:
        raise DataFormatError("Invalid UID.", "warn")
    return uid.split(ID_DELIMITER)


def leaf_id(uid: str) -> str:
    """Return the last segment of a composite identifier."""
    return parse_id(uid)[-1]


def parent_id(uid: str) -> str:
    """Return the identifier of the owning scope (everything but the leaf)."""
    return create_id(parse_id(uid)[:-1])


@dataclass(frozen=True)
class CompositeID:
    """Parsed composite identifier with named accessors."""

    segments: Tuple[str, ...]

    def __post_init__(self):
        if not 1 <= len(self.segments) <= MAX_SEGMENTS:
            raise DataFormatError(
                f"An ID must have between 1 and {MAX_SEGMENTS} segments.", "warn"
            )
        # Reuses create_id's segment checks
        create_id(self.segments)

    @classmethod
    def parse(cls, uid: str) -> "CompositeID":
        if not isinstance(uid, str):
            raise DataFormatError("Invalid UID.", "warn")
        return cls(tuple(uid.split(ID_DELIMITER)))

    @classmethod
    def of(cls, *segments: str) -> "CompositeID":
        return cls(tuple(segments))

    def __str__(self) -> str:
        return create_id(self.segments)

    @property
    def depth(self) -> int:
        return len(self.segments)

    @property
    def org(self) -> str:
        return self.segments[0]

    @property
    def project(self) -> Optional[str]:
        return self.segments[1] if self.depth > 1 else None

    @property
    def branch(self) -> Optional[str]:
        return self.segments[2] if self.depth > 2 else None

    @property
    def element(self) -> Optional[str]:
        return self.segments[3] if self.depth > 3 else None

    @property
    def leaf(self) -> str:
        return self.segments[-1]

    @property
    def project_id(self) -> Optional[str]:
        return create_id(self.segments[:2]) if self.depth > 1 else None

    @property
    def branch_id(self) -> Optional[str]:
        return create_id(self.segments[:3]) if self.depth > 2 else None

    def child(self, segment: str) -> "CompositeID":
        """Return the identifier one level below this one."""
        return CompositeID(self.segments + (segment,))

    def rebase(self, branch_id: str) -> "CompositeID":
        """Move an element-level identifier under another branch."""
        if self.depth != MAX_SEGMENTS:
            raise DataFormatError(
                f"Only element-level IDs can be rebased, got [{self}].", "warn"
            )
        return CompositeID.parse(branch_id).child(self.leaf)
