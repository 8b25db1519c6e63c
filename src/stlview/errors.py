"""Error taxonomy shared by the parser, the camera setup and the render core."""

from __future__ import annotations

import enum
from typing import Optional


class StlViewError(Exception):
    """Base class for every error raised by stlview."""


class FormatErrorKind(enum.Enum):
    UNCLASSIFIABLE = "unclassifiable"
    MISSING_HEADER = "missing-header"
    TRUNCATED = "truncated"
    COUNT_MISMATCH = "count-mismatch"
    UNEXPECTED_TOKEN = "unexpected-token"
    MALFORMED_TOKEN = "malformed-token"
    UNEXPECTED_EOF = "unexpected-eof"
    MISMATCHED_SOLID_NAME = "mismatched-solid-name"
    EMPTY = "empty"
    UNKNOWN_FILE_TYPE = "unknown-file-type"


class FormatError(StlViewError, ValueError):
    """An STL stream could not be decoded.

    ``offset`` is a byte offset for binary data, ``line`` a 1-based line
    number for ASCII data. ``expected`` and ``actual`` describe the mismatch
    when one exists.
    """

    def __init__(
        self,
        kind: FormatErrorKind,
        message: str,
        *,
        offset: Optional[int] = None,
        line: Optional[int] = None,
        expected: Optional[object] = None,
        actual: Optional[object] = None,
        source: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.offset = offset
        self.line = line
        self.expected = expected
        self.actual = actual
        self.source = source
        self.detail = message
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.source:
            parts.append(self.source)
        if self.line is not None:
            parts.append(f"line {self.line}")
        if self.offset is not None:
            parts.append(f"byte {self.offset}")
        location = ", ".join(parts)
        message = f"{location}: {self.detail}" if location else self.detail
        if self.expected is not None or self.actual is not None:
            message += f" (expected {self.expected!s}, got {self.actual!s})"
        return message


class ConfigurationError(StlViewError, ValueError):
    """Camera, light or output settings that cannot produce an image."""


class RenderInvariantViolation(StlViewError, AssertionError):
    """An internal invariant of the render core was broken."""


class CorruptMeshError(StlViewError):
    """A mesh produced non-finite geometry and cannot be rendered."""


class DegenerateGeometryWarning(UserWarning):
    """Zero-area triangles were kept in a mesh."""
