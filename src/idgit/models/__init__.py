"""Data models for idgit."""

from .delta import Delta, DeltaKind
from .diff import DiffDetails, LineChange, LineOrigin
from .file_ref import FileRef

__all__ = ["Delta", "DeltaKind", "DiffDetails", "FileRef", "LineChange", "LineOrigin"]
