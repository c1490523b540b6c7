"""Errors and per-element issue records.

Only structural failures raise. Degraded outcomes (malformed geometry,
unresolvable colors, unsupported geometry) are recorded as ``ElementIssue``
values and the pipeline keeps going.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SlideCodecError(Exception):
    """Base class for slidecodec errors."""


class IndexMismatchError(SlideCodecError):
    """Inserted text length and run ranges disagree.

    Every range-based text operation after the insert would address the wrong
    characters, so the element must not be emitted.
    """

    def __init__(self, object_id: str, expected: int, actual: int, run_index: Optional[int] = None):
        self.object_id = object_id
        self.expected = expected
        self.actual = actual
        self.run_index = run_index
        where = f" at run {run_index}" if run_index is not None else ""
        super().__init__(
            f"Text index mismatch for {object_id}{where}: inserted {expected} units, ranges cover {actual}"
        )


class UnsupportedGeometryError(SlideCodecError):
    """Element geometry has no affine-matrix representation."""

    def __init__(self, object_id: str, reason: str):
        self.object_id = object_id
        self.reason = reason
        super().__init__(f"Unsupported geometry for {object_id}: {reason}")


class DocumentValidationError(SlideCodecError, ValueError):
    """Canonical document is structurally invalid or exceeds limits."""


class IssueKind(str, Enum):
    """Kinds of recorded, non-fatal processing issues."""

    MALFORMED_GEOMETRY = "MalformedGeometry"
    UNRESOLVABLE_COLOR = "UnresolvableColorToken"
    UNSUPPORTED_GEOMETRY = "UnsupportedGeometry"
    INDEX_MISMATCH = "IndexMismatch"
    ELEMENT_FAILURE = "ElementFailure"
    UNKNOWN_ELEMENT_TYPE = "UnknownElementType"


class ElementIssue(BaseModel):
    """A diagnosable record of something that went wrong for one element."""

    model_config = ConfigDict(frozen=True)

    kind: IssueKind
    slide_index: Optional[int] = Field(default=None, description="0-based slide index")
    object_id: Optional[str] = Field(default=None, description="Element or page object id")
    detail: str = Field(default="", description="Human-readable context (token, index, message)")
