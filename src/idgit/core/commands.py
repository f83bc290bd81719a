"""Invertible staging commands."""

import logging
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from idgit.models.file_ref import FileRef

if TYPE_CHECKING:
    from idgit.core.backend import GitBackend

logger = logging.getLogger(__name__)


class StagingAction(str, Enum):
    """The two staging actions; each is the other's inverse."""

    STAGE = "stage"
    UNSTAGE = "unstage"

    @property
    def inverse(self) -> "StagingAction":
        if self is StagingAction.STAGE:
            return StagingAction.UNSTAGE
        return StagingAction.STAGE


class StagingCommand(BaseModel):
    """Stage or unstage one file. Never mutated once created."""

    action: StagingAction
    file: FileRef

    model_config = {"frozen": True}

    @classmethod
    def stage(cls, file: FileRef) -> "StagingCommand":
        return cls(action=StagingAction.STAGE, file=file)

    @classmethod
    def unstage(cls, file: FileRef) -> "StagingCommand":
        return cls(action=StagingAction.UNSTAGE, file=file)

    def inverse(self) -> "StagingCommand":
        return StagingCommand(action=self.action.inverse, file=self.file)

    def apply(self, backend: "GitBackend") -> None:
        execute(backend, self.action, self.file)

    def undo(self, backend: "GitBackend") -> None:
        execute(backend, self.action.inverse, self.file)

    def __str__(self) -> str:
        return f"{self.action.value} {self.file}"


def execute(backend: "GitBackend", action: StagingAction, file: FileRef) -> None:
    if action is StagingAction.STAGE:
        stage_file(backend, file)
    else:
        unstage_file(backend, file)


def stage_file(backend: "GitBackend", file: FileRef) -> None:
    """Add the file to the index unless git's ignore rules match it."""
    path = file.rel_path_required()
    if backend.is_ignored(path):
        logger.debug("Ignoring %s", file)
        return
    backend.add_to_index(path)


def unstage_file(backend: "GitBackend", file: FileRef) -> None:
    """Reset the file's index entry, whether or not it is ignored."""
    backend.remove_from_index(file.rel_path_required())
