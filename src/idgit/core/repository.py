"""Repository facade: uncommitted changes, diff detail and undoable staging."""

import logging
from pathlib import Path
from typing import List, Optional, Union

from idgit.config import IdgitConfig
from idgit.core.backend import GitBackend
from idgit.core.classifier import DeltaClassifier
from idgit.core.commands import StagingCommand
from idgit.core.extractor import PathDiffExtractor
from idgit.core.history import ChangeHistory
from idgit.models.delta import Delta
from idgit.models.diff import DiffDetails
from idgit.models.file_ref import FileRef

logger = logging.getLogger(__name__)

DiffTarget = Union[Delta, FileRef, Path, str]


class Repo:
    """A git working tree seen through its uncommitted changes.

    The backend and the command history are kept apart: the history is
    handed the backend on each call and never holds on to it.
    """

    def __init__(self, backend: GitBackend):
        self._backend = backend
        self._history: ChangeHistory[StagingCommand] = ChangeHistory(
            limit=backend.config.history_limit
        )
        self._classifier = DeltaClassifier()
        self._extractor = PathDiffExtractor(backend, self._classifier)

    @classmethod
    def open(cls, path: Union[str, Path], config: Optional[IdgitConfig] = None) -> "Repo":
        """Open the repository whose working tree is at ``path``."""
        return cls(GitBackend.open(path, config))

    @property
    def path(self) -> Path:
        return self._backend.path

    @property
    def config(self) -> IdgitConfig:
        return self._backend.config

    @property
    def history(self) -> ChangeHistory[StagingCommand]:
        return self._history

    def uncommitted(self) -> List[Delta]:
        """Classified uncommitted changes, ordered by path."""
        return [self._classifier.classify(record) for record in self._backend.iter_changes()]

    def diff_details(self, target: DiffTarget) -> DiffDetails:
        """Classification and line detail for one path.

        Raises:
            PathNotFound: if the path has no uncommitted change right now.
        """
        related = []
        if isinstance(target, Delta) and target.old is not None and target.old.rel_path:
            related.append(target.old.rel_path)
        return self._extractor.extract(self._target_path(target), related)

    def stage_file(self, file: FileRef) -> None:
        self._history.apply(self._backend, StagingCommand.stage(file))

    def unstage_file(self, file: FileRef) -> None:
        self._history.apply(self._backend, StagingCommand.unstage(file))

    def undo(self) -> None:
        self._history.undo(self._backend)

    def redo(self) -> None:
        self._history.redo(self._backend)

    def close(self) -> None:
        self._backend.close()

    def __enter__(self) -> "Repo":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    @staticmethod
    def _target_path(target: DiffTarget) -> str:
        if isinstance(target, Delta):
            return target.file.rel_path_required()
        if isinstance(target, FileRef):
            return target.rel_path_required()
        if isinstance(target, Path):
            return target.as_posix()
        return target

    def __repr__(self) -> str:
        history = self._history.display().replace("\n", "; ")
        return f"Repo(path={str(self.path)!r}, history={history!r})"
