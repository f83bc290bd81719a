"""Exceptions raised by idgit."""

from pathlib import Path
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from idgit.models.file_ref import FileRef


class IdgitError(Exception):
    """Base class for errors a caller can handle."""


class BackendFailure(IdgitError):
    """The git backend failed (bad repository, failing git command, ...)."""


class IoFailure(IdgitError):
    """Probing the working tree failed."""

    def __init__(self, path: Union[str, Path], error: OSError):
        super().__init__(f"Error getting metadata for {str(path)!r}: {error}")
        self.path = Path(path)
        self.error = error


class MissingPath(IdgitError):
    """A FileRef has no relative path but the operation needs one."""

    def __init__(self, file: "FileRef"):
        super().__init__(f"Path must be specified, got ({file!r})")
        self.file = file


class MissingId(IdgitError):
    """A FileRef has no content id but the operation needs one."""

    def __init__(self, file: "FileRef"):
        super().__init__(f"Id must be specified, got ({file!r})")
        self.file = file


class PathNotFound(IdgitError):
    """Diff detail was requested for a path with no uncommitted change."""

    def __init__(self, path: str):
        super().__init__(f"No uncommitted change for path: {path}")
        self.path = path


class UndoEmpty(IdgitError):
    """Nothing left to undo."""

    def __init__(self):
        super().__init__("Nothing to undo")


class RedoEmpty(IdgitError):
    """Nothing left to redo."""

    def __init__(self):
        super().__init__("Nothing to redo")


class ConfigError(IdgitError):
    """The idgit configuration file could not be loaded."""


class ContractViolation(AssertionError):
    """The backend produced a change record that breaks its contract.

    Deliberately not an IdgitError: callers are not expected to recover.
    """
