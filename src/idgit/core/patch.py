"""Incremental parser for git's unified patch output.

Turns the byte lines of ``git diff`` into ``(path, LineChange)`` pairs, in the
order git prints them. File contents are only read (to compute byte offsets)
for the files whose content lines are actually consumed.
"""

import logging
import re
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from idgit.models.diff import LineChange, LineOrigin

logger = logging.getLogger(__name__)

BlobReader = Callable[[str], Optional[bytes]]
WorktreeReader = Callable[[str], Optional[bytes]]

HUNK_HEADER_RE = re.compile(rb"^@@ -(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@")
INDEX_RE = re.compile(rb"^index ([0-9a-f]+)\.\.([0-9a-f]+)")
QUOTED_PAIR_RE = re.compile(rb'^("(?:[^"\\]|\\.)*"|\S+) ("(?:[^"\\]|\\.)*"|\S+)$')

_ESCAPES = {
    b"a": b"\a",
    b"b": b"\b",
    b"t": b"\t",
    b"n": b"\n",
    b"v": b"\v",
    b"f": b"\f",
    b"r": b"\r",
    b'"': b'"',
    b"\\": b"\\",
}

_EOFNL_ORIGINS = {
    LineOrigin.CONTEXT: LineOrigin.CONTEXT_EOFNL,
    LineOrigin.ADDITION: LineOrigin.ADD_EOFNL,
    LineOrigin.DELETION: LineOrigin.DEL_EOFNL,
}


def is_null_oid(oid: Optional[str]) -> bool:
    return not oid or not oid.strip("0")


def unquote_path(raw: bytes) -> str:
    """Decode a path from a patch header, undoing git's C-style quoting."""
    if not (raw.startswith(b'"') and raw.endswith(b'"') and len(raw) >= 2):
        return raw.decode("utf-8", errors="surrogateescape")

    body = raw[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        char = body[i : i + 1]
        if char != b"\\":
            out += char
            i += 1
            continue
        escaped = body[i + 1 : i + 2]
        if escaped and escaped in b"01234567":
            out.append(int(body[i + 1 : i + 4], 8) & 0xFF)
            i += 4
        else:
            out += _ESCAPES.get(escaped, escaped)
            i += 2
    return bytes(out).decode("utf-8", errors="surrogateescape")


def _strip_prefix(path: str) -> str:
    return path[2:] if path[:2] in ("a/", "b/") else path


def _header_path(value: bytes) -> Optional[str]:
    """Path from a ``---``/``+++`` line value, None for /dev/null."""
    value = value.rstrip(b"\n").rstrip(b"\t")
    if value == b"/dev/null":
        return None
    return _strip_prefix(unquote_path(value))


def _git_header_paths(rest: bytes) -> Tuple[Optional[str], Optional[str]]:
    """Old and new path from the ``diff --git a/<old> b/<new>`` line."""
    rest = rest.rstrip(b"\n")
    if rest.startswith(b'"') or rest.endswith(b'"'):
        match = QUOTED_PAIR_RE.match(rest)
        if match:
            return (
                _strip_prefix(unquote_path(match.group(1))),
                _strip_prefix(unquote_path(match.group(2))),
            )
        return None, None

    # Unquoted names may contain spaces; both halves are equal unless renamed,
    # and renames are resolved from the extended header lines.
    half = (len(rest) - 1) // 2
    old, new = rest[:half], rest[half + 1 :]
    if old[2:] == new[2:]:
        path = _strip_prefix(unquote_path(old))
        return path, path
    return None, None


class _LineIndex:
    """Byte offsets of line starts within one version of a file."""

    def __init__(self, data: Optional[bytes]):
        self._starts: List[int] = []
        if data:
            self._starts.append(0)
            pos = data.find(b"\n")
            while pos != -1 and pos + 1 < len(data):
                self._starts.append(pos + 1)
                pos = data.find(b"\n", pos + 1)

    def offset(self, lineno: int) -> int:
        if 0 < lineno <= len(self._starts):
            return self._starts[lineno - 1]
        return -1


class _FilePatch:
    """Header state of the file currently being parsed."""

    def __init__(self, first_line: bytes, read_blob, read_worktree):
        self.header: List[bytes] = [first_line]
        self.old_path, self.new_path = _git_header_paths(first_line[len(b"diff --git ") :])
        self.old_oid: Optional[str] = None
        self.header_emitted = False
        self._read_blob = read_blob
        self._read_worktree = read_worktree
        self._old_index: Optional[_LineIndex] = None
        self._new_index: Optional[_LineIndex] = None

    @property
    def path(self) -> Optional[str]:
        return self.new_path if self.new_path is not None else self.old_path

    def add_header_line(self, line: bytes) -> None:
        self.header.append(line)
        if line.startswith(b"--- "):
            self.old_path = _header_path(line[4:])
        elif line.startswith(b"+++ "):
            self.new_path = _header_path(line[4:])
        elif line.startswith((b"rename from ", b"copy from ")):
            self.old_path = unquote_path(line.split(b" ", 2)[2].rstrip(b"\n"))
        elif line.startswith((b"rename to ", b"copy to ")):
            self.new_path = unquote_path(line.split(b" ", 2)[2].rstrip(b"\n"))
        elif line.startswith(b"deleted file mode"):
            self.new_path = None
        elif line.startswith(b"new file mode"):
            self.old_path = None
        else:
            match = INDEX_RE.match(line)
            if match:
                self.old_oid = match.group(1).decode("ascii")

    def header_line(self) -> LineChange:
        self.header_emitted = True
        content = b"".join(self.header)
        return LineChange(
            origin=LineOrigin.FILE_HEADER,
            content=content,
            num_lines=content.count(b"\n"),
        )

    def old_offset(self, lineno: int) -> int:
        if self._old_index is None:
            data = None
            if self._read_blob is not None and not is_null_oid(self.old_oid):
                data = self._read_blob(self.old_oid)
            self._old_index = _LineIndex(data)
        return self._old_index.offset(lineno)

    def new_offset(self, lineno: int) -> int:
        if self._new_index is None:
            data = None
            if self._read_worktree is not None and self.new_path is not None:
                data = self._read_worktree(self.new_path)
            self._new_index = _LineIndex(data)
        return self._new_index.offset(lineno)


class PatchParser:
    """Parses ``git diff`` output into line records keyed by path.

    Byte offsets index the old version for context and deleted lines and the
    working tree version for added lines. Without readers every offset is -1.
    """

    def __init__(
        self,
        read_blob: Optional[BlobReader] = None,
        read_worktree: Optional[WorktreeReader] = None,
    ):
        self._read_blob = read_blob
        self._read_worktree = read_worktree

    def parse(self, lines: Iterable[bytes]) -> Iterator[Tuple[str, LineChange]]:
        patch: Optional[_FilePatch] = None
        in_hunk = False
        old_line = new_line = 0
        last_origin = LineOrigin.CONTEXT

        for line in lines:
            if line.startswith(b"diff --git "):
                if patch is not None and not patch.header_emitted:
                    yield patch.path, patch.header_line()
                patch = _FilePatch(line, self._read_blob, self._read_worktree)
                in_hunk = False
                continue

            if patch is None:
                continue

            if line.startswith(b"@@"):
                if not patch.header_emitted:
                    yield patch.path, patch.header_line()
                match = HUNK_HEADER_RE.match(line)
                if match is None:
                    logger.warning("Malformed hunk header: %r", line[:100])
                    in_hunk = False
                    continue
                old_line, new_line = int(match.group(1)), int(match.group(2))
                in_hunk = True
                yield patch.path, LineChange(
                    origin=LineOrigin.HUNK_HEADER,
                    content=line,
                    num_lines=line.count(b"\n"),
                )
                continue

            if not in_hunk:
                if line.startswith(b"Binary files "):
                    if not patch.header_emitted:
                        yield patch.path, patch.header_line()
                    yield patch.path, LineChange(
                        origin=LineOrigin.BINARY,
                        content=line,
                        num_lines=line.count(b"\n"),
                    )
                else:
                    patch.add_header_line(line)
                continue

            marker, content = line[:1], line[1:]
            if marker == b" ":
                record = LineChange(
                    old_lineno=old_line,
                    new_lineno=new_line,
                    num_lines=content.count(b"\n"),
                    content_offset=patch.old_offset(old_line),
                    content=content,
                    origin=LineOrigin.CONTEXT,
                )
                old_line += 1
                new_line += 1
            elif marker == b"-":
                record = LineChange(
                    old_lineno=old_line,
                    num_lines=content.count(b"\n"),
                    content_offset=patch.old_offset(old_line),
                    content=content,
                    origin=LineOrigin.DELETION,
                )
                old_line += 1
            elif marker == b"+":
                record = LineChange(
                    new_lineno=new_line,
                    num_lines=content.count(b"\n"),
                    content_offset=patch.new_offset(new_line),
                    content=content,
                    origin=LineOrigin.ADDITION,
                )
                new_line += 1
            elif marker == b"\\":
                record = LineChange(
                    num_lines=line.count(b"\n"),
                    content=line,
                    origin=_EOFNL_ORIGINS.get(last_origin, LineOrigin.CONTEXT_EOFNL),
                )
            else:
                logger.debug("Skipping unexpected patch line: %r", line[:100])
                continue

            last_origin = record.origin
            yield patch.path, record

        if patch is not None and not patch.header_emitted:
            yield patch.path, patch.header_line()
