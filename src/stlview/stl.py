"""Reading and writing binary and ASCII STL files."""

from __future__ import annotations

import logging
import math
import os
import re
import struct
import warnings
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .errors import DegenerateGeometryWarning, FormatError, FormatErrorKind
from .mesh import Mesh, Triangle
from .vecmath import Vec3

logger = logging.getLogger(__name__)

HEADER_SIZE = 80
COUNT_SIZE = 4
RECORD_SIZE = 50
BINARY_PREAMBLE = HEADER_SIZE + COUNT_SIZE

_COUNT = struct.Struct("<I")
_RECORD = struct.Struct("<12fH")

_TOKEN_RE = re.compile(rb"\S+")

PathLike = Union[str, "os.PathLike[str]"]


def parse_stl(data: bytes, *, source: Optional[str] = None) -> Mesh:
    """Decode an STL byte stream, detecting binary or ASCII layout.

    A stream whose length matches its binary facet count is binary even when
    the header starts with ``solid``; otherwise a NUL-free stream starting
    with ``solid`` is ASCII. Anything else of at least 84 bytes is decoded as
    binary so the length check can report the mismatch.
    """

    kind = detect_format(data)
    if kind == "binary":
        mesh = _parse_binary(data, source)
    elif kind == "ascii":
        mesh = _parse_ascii(data, source)
    else:
        raise FormatError(
            FormatErrorKind.UNCLASSIFIABLE,
            "stream is neither binary STL (needs at least 84 bytes) nor ASCII STL (needs a 'solid' header)",
            expected=f">= {BINARY_PREAMBLE} bytes or 'solid'",
            actual=f"{len(data)} bytes",
            source=source,
        )

    logger.info(
        "Parsed %s STL%s: %d triangles",
        kind,
        f" '{source}'" if source else "",
        len(mesh),
    )
    degenerate = mesh.degenerate_count
    if degenerate:
        logger.warning("%d degenerate triangle(s) retained in %s", degenerate, source or "mesh")
        warnings.warn(
            f"{degenerate} zero-area triangle(s) retained in {source or 'mesh'}",
            DegenerateGeometryWarning,
            stacklevel=2,
        )
    return mesh


def detect_format(data: bytes) -> Optional[str]:
    """Return ``"binary"``, ``"ascii"`` or ``None`` for an unclassifiable stream."""

    if len(data) >= BINARY_PREAMBLE:
        (count,) = _COUNT.unpack_from(data, HEADER_SIZE)
        if BINARY_PREAMBLE + count * RECORD_SIZE == len(data):
            return "binary"
    if data.lstrip()[:5].lower() == b"solid" and b"\x00" not in data:
        return "ascii"
    if len(data) >= BINARY_PREAMBLE:
        return "binary"
    return None


def load_stl(path: PathLike) -> Mesh:
    """Read and parse an STL file from disk."""

    with open(path, "rb") as fh:
        data = fh.read()
    return parse_stl(data, source=os.fspath(path))


def load_mesh(path: PathLike) -> Mesh:
    """Load a mesh file, choosing the reader from the file extension."""

    extension = Path(path).suffix.lower()
    if extension != ".stl":
        raise FormatError(
            FormatErrorKind.UNKNOWN_FILE_TYPE,
            "unsupported mesh file type",
            expected=".stl",
            actual=extension or "<no extension>",
            source=os.fspath(path),
        )
    return load_stl(path)


# Binary ------------------------------------------------------------


def _parse_binary(data: bytes, source: Optional[str]) -> Mesh:
    if len(data) < BINARY_PREAMBLE:
        raise FormatError(
            FormatErrorKind.TRUNCATED,
            "binary header truncated",
            offset=len(data),
            expected=f"{BINARY_PREAMBLE} bytes",
            actual=f"{len(data)} bytes",
            source=source,
        )

    (count,) = _COUNT.unpack_from(data, HEADER_SIZE)
    expected_size = BINARY_PREAMBLE + count * RECORD_SIZE
    if expected_size != len(data):
        available = (len(data) - BINARY_PREAMBLE) // RECORD_SIZE
        if len(data) < expected_size:
            kind = FormatErrorKind.TRUNCATED
            message = (
                f"declared {count} triangles but only {available} complete record(s) are present"
            )
        else:
            kind = FormatErrorKind.COUNT_MISMATCH
            message = f"declared {count} triangles but the data holds {available} record(s)"
        raise FormatError(
            kind,
            message,
            offset=len(data),
            expected=f"{expected_size} bytes",
            actual=f"{len(data)} bytes",
            source=source,
        )
    if count == 0:
        raise FormatError(
            FormatErrorKind.EMPTY,
            "binary STL declares no triangles",
            offset=HEADER_SIZE,
            source=source,
        )

    triangles: List[Triangle] = []
    for index in range(count):
        offset = BINARY_PREAMBLE + index * RECORD_SIZE
        values = _RECORD.unpack_from(data, offset)
        if not all(math.isfinite(value) for value in values[:12]):
            raise FormatError(
                FormatErrorKind.MALFORMED_TOKEN,
                f"triangle {index} contains a non-finite coordinate",
                offset=offset,
                source=source,
            )
        normal = Vec3(values[0], values[1], values[2])
        v0 = Vec3(values[3], values[4], values[5])
        v1 = Vec3(values[6], values[7], values[8])
        v2 = Vec3(values[9], values[10], values[11])
        triangles.append(Triangle.from_facet(normal, v0, v1, v2))

    header = data[:HEADER_SIZE].rstrip(b"\x00 ").decode("ascii", errors="replace")
    return Mesh(triangles, name=header or None)


# ASCII -------------------------------------------------------------


class _TokenStream:
    """Whitespace tokenizer that remembers the line each token came from."""

    def __init__(self, data: bytes, source: Optional[str], first_line: int = 1):
        self._source = source
        self._tokens = self._tokenize(data, first_line)
        self._lookahead: Optional[Tuple[str, int]] = None
        self.line = first_line

    @staticmethod
    def _tokenize(data: bytes, first_line: int) -> Iterator[Tuple[str, int]]:
        for number, raw_line in enumerate(data.splitlines(), start=first_line):
            for match in _TOKEN_RE.finditer(raw_line):
                yield match.group().decode("ascii", errors="replace"), number

    def next(self) -> Optional[Tuple[str, int]]:
        if self._lookahead is not None:
            token, self._lookahead = self._lookahead, None
        else:
            token = next(self._tokens, None)
        if token is not None:
            self.line = token[1]
        return token

    def peek(self) -> Optional[Tuple[str, int]]:
        if self._lookahead is None:
            self._lookahead = next(self._tokens, None)
        return self._lookahead

    def expect(self, keyword: str) -> None:
        token = self.next()
        if token is None:
            raise FormatError(
                FormatErrorKind.UNEXPECTED_EOF,
                "unexpected end of file",
                line=self.line,
                expected=repr(keyword),
                actual="end of file",
                source=self._source,
            )
        text, line = token
        if text.lower() != keyword:
            raise FormatError(
                FormatErrorKind.UNEXPECTED_TOKEN,
                "unexpected token",
                line=line,
                expected=repr(keyword),
                actual=repr(text),
                source=self._source,
            )

    def number(self) -> float:
        token = self.next()
        if token is None:
            raise FormatError(
                FormatErrorKind.UNEXPECTED_EOF,
                "unexpected end of file",
                line=self.line,
                expected="a number",
                actual="end of file",
                source=self._source,
            )
        text, line = token
        try:
            value = float(text)
        except ValueError:
            value = math.nan
        if not math.isfinite(value):
            raise FormatError(
                FormatErrorKind.MALFORMED_TOKEN,
                "malformed number",
                line=line,
                expected="a finite number",
                actual=repr(text),
                source=self._source,
            )
        return value

    def vector(self) -> Vec3:
        return Vec3(self.number(), self.number(), self.number())


def _read_header(data: bytes, source: Optional[str]) -> Tuple[Optional[str], bytes, int]:
    """Split off the ``solid`` line; returns the solid name, the body and its first line number."""

    stripped = data.lstrip()
    skipped_lines = data[: len(data) - len(stripped)].count(b"\n")
    first_line, _, body = stripped.partition(b"\n")
    words = first_line.split(None, 1)
    if not words or words[0].lower() != b"solid":
        raise FormatError(
            FormatErrorKind.MISSING_HEADER,
            "ASCII STL must start with 'solid'",
            line=skipped_lines + 1,
            expected="'solid'",
            actual=repr(words[0].decode("ascii", errors="replace")) if words else "empty line",
            source=source,
        )
    # Runs of whitespace in the name compare equal to a single space.
    name = " ".join(words[1].decode("ascii", errors="replace").split()) if len(words) > 1 else None
    return name or None, body, skipped_lines + 2


def _parse_ascii(data: bytes, source: Optional[str]) -> Mesh:
    name, body, first_body_line = _read_header(data, source)
    stream = _TokenStream(body, source, first_body_line)
    triangles: List[Triangle] = []

    while True:
        token = stream.next()
        if token is None:
            raise FormatError(
                FormatErrorKind.UNEXPECTED_EOF,
                "file ended before 'endsolid'",
                line=stream.line,
                expected="'facet' or 'endsolid'",
                actual="end of file",
                source=source,
            )
        text, line = token
        keyword = text.lower()
        if keyword == "endsolid":
            _check_end_name(stream, name, line, source)
            trailing = stream.peek()
            if trailing is not None:
                logger.warning(
                    "Ignoring content after 'endsolid' from line %d in %s", trailing[1], source or "mesh"
                )
            break
        if keyword != "facet":
            raise FormatError(
                FormatErrorKind.UNEXPECTED_TOKEN,
                "unexpected token",
                line=line,
                expected="'facet' or 'endsolid'",
                actual=repr(text),
                source=source,
            )

        stream.expect("normal")
        normal = stream.vector()
        stream.expect("outer")
        stream.expect("loop")
        stream.expect("vertex")
        v0 = stream.vector()
        stream.expect("vertex")
        v1 = stream.vector()
        stream.expect("vertex")
        v2 = stream.vector()
        stream.expect("endloop")
        stream.expect("endfacet")
        triangles.append(Triangle.from_facet(normal, v0, v1, v2))

    if not triangles:
        raise FormatError(
            FormatErrorKind.EMPTY,
            "ASCII STL contains no facets",
            line=stream.line,
            source=source,
        )
    return Mesh(triangles, name=name)


def _check_end_name(stream: _TokenStream, name: Optional[str], line: int, source: Optional[str]) -> None:
    # The end name runs to the end of the 'endsolid' line; later lines are ignored.
    words: List[str] = []
    while True:
        upcoming = stream.peek()
        if upcoming is None or upcoming[1] != line:
            break
        words.append(upcoming[0])
        stream.next()
    end_name = " ".join(words) or None
    if end_name is not None and end_name != name:
        raise FormatError(
            FormatErrorKind.MISMATCHED_SOLID_NAME,
            "solid names at start and end differ",
            line=line,
            expected=repr(name),
            actual=repr(end_name),
            source=source,
        )


# Writing -----------------------------------------------------------


def dump_binary(mesh: Mesh, header: bytes = b"") -> bytes:
    """Serialize a mesh as binary STL in mesh-local coordinates."""

    if header.lstrip()[:5].lower() == b"solid":
        raise ValueError("Binary STL headers must not start with 'solid'")
    if len(header) > HEADER_SIZE:
        raise ValueError(f"Binary STL header is limited to {HEADER_SIZE} bytes")

    chunks = [header.ljust(HEADER_SIZE, b"\x00"), _COUNT.pack(len(mesh))]
    for triangle in mesh:
        v0, v1, v2 = triangle.vertices
        chunks.append(_RECORD.pack(*triangle.normal, *v0, *v1, *v2, 0))
    return b"".join(chunks)


def dump_ascii(mesh: Mesh, name: Optional[str] = None) -> str:
    """Serialize a mesh as ASCII STL in mesh-local coordinates."""

    label = " ".join((name if name is not None else (mesh.name or "")).split())
    lines = [f"solid {label}".rstrip()]
    for triangle in mesh:
        n = triangle.normal
        lines.append(f"  facet normal {n.x:.6e} {n.y:.6e} {n.z:.6e}")
        lines.append("    outer loop")
        for v in triangle.vertices:
            lines.append(f"      vertex {v.x:.6e} {v.y:.6e} {v.z:.6e}")
        lines.append("    endloop")
        lines.append("  endfacet")
    lines.append(f"endsolid {label}".rstrip())
    return "\n".join(lines) + "\n"


def save_stl(mesh: Mesh, path: PathLike, *, ascii: bool = False) -> None:
    if ascii:
        with open(path, "w", encoding="ascii") as fh:
            fh.write(dump_ascii(mesh))
    else:
        with open(path, "wb") as fh:
            fh.write(dump_binary(mesh))
    logger.info("Wrote %s STL with %d triangles to %s", "ASCII" if ascii else "binary", len(mesh), path)
