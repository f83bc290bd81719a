"""idgit - inspect uncommitted changes and stage them with undo/redo."""

from idgit.config import IdgitConfig
from idgit.core import Repo
from idgit.exceptions import (
    BackendFailure,
    ConfigError,
    ContractViolation,
    IdgitError,
    IoFailure,
    MissingId,
    MissingPath,
    PathNotFound,
    RedoEmpty,
    UndoEmpty,
)
from idgit.models import Delta, DeltaKind, DiffDetails, FileRef, LineChange, LineOrigin

__version__ = "0.1.0"

__all__ = [
    "BackendFailure",
    "ConfigError",
    "ContractViolation",
    "Delta",
    "DeltaKind",
    "DiffDetails",
    "FileRef",
    "IdgitConfig",
    "IdgitError",
    "IoFailure",
    "LineChange",
    "LineOrigin",
    "MissingId",
    "MissingPath",
    "PathNotFound",
    "RedoEmpty",
    "Repo",
    "UndoEmpty",
]
