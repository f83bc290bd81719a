"""Line-level diff records."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from idgit.models.delta import Delta


class LineOrigin(str, Enum):
    """Origin tag of a diff line, using git's one-character markers."""

    CONTEXT = " "
    ADDITION = "+"
    DELETION = "-"
    CONTEXT_EOFNL = "="
    ADD_EOFNL = ">"
    DEL_EOFNL = "<"
    FILE_HEADER = "F"
    HUNK_HEADER = "H"
    BINARY = "B"


class LineChange(BaseModel):
    """One line record of a file's diff."""

    old_lineno: Optional[int] = None  # None for added lines
    new_lineno: Optional[int] = None  # None for deleted lines
    num_lines: int = 0  # newline characters in content
    content_offset: int = -1  # byte offset of content in its file, -1 if n/a
    content: bytes = b""
    origin: LineOrigin

    model_config = {"frozen": True}

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class DiffDetails(BaseModel):
    """Classification of one path plus its line records in traversal order."""

    delta: Delta
    lines: List[LineChange] = []

    model_config = {"frozen": True}

    @property
    def additions(self) -> int:
        return sum(1 for line in self.lines if line.origin == LineOrigin.ADDITION)

    @property
    def deletions(self) -> int:
        return sum(1 for line in self.lines if line.origin == LineOrigin.DELETION)
