"""Classification of one uncommitted change."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, model_validator

from idgit.models.file_ref import FileRef


class DeltaKind(str, Enum):
    """How a path differs between the baseline and the working state."""

    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"
    COPIED = "copied"
    IGNORED = "ignored"
    UNTRACKED = "untracked"
    TYPECHANGE = "typechange"
    UNREADABLE = "unreadable"
    CONFLICTED = "conflicted"

    @property
    def is_dual(self) -> bool:
        """True for kinds that carry both an old and a new side."""
        return self in DUAL_KINDS


DUAL_KINDS = frozenset(
    {
        DeltaKind.MODIFIED,
        DeltaKind.RENAMED,
        DeltaKind.COPIED,
        DeltaKind.TYPECHANGE,
        DeltaKind.CONFLICTED,
    }
)

# Single-side kinds that carry the old side; all others carry the new one.
OLD_SIDE_KINDS = frozenset({DeltaKind.DELETED})


class Delta(BaseModel):
    """A classified change: its kind plus one or two FileRefs."""

    kind: DeltaKind
    old: Optional[FileRef] = None
    new: Optional[FileRef] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_sides(self) -> "Delta":
        if self.kind.is_dual:
            if self.old is None or self.new is None:
                raise ValueError(f"{self.kind.value} delta needs both sides")
        elif self.kind in OLD_SIDE_KINDS:
            if self.old is None or self.new is not None:
                raise ValueError(f"{self.kind.value} delta carries only the old side")
        elif self.new is None or self.old is not None:
            raise ValueError(f"{self.kind.value} delta carries only the new side")
        return self

    @property
    def file(self) -> FileRef:
        """The side that names the path: new if present, otherwise old."""
        return self.new if self.new is not None else self.old

    @property
    def path(self) -> Optional[str]:
        return self.file.rel_path

    def __str__(self) -> str:
        if self.kind in (DeltaKind.RENAMED, DeltaKind.COPIED):
            return f"{self.kind.value}: {self.old} -> {self.new}"
        return f"{self.kind.value}: {self.file}"
