"""Diff detail for a single path."""

import logging
from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence

from idgit.core.classifier import DeltaClassifier
from idgit.exceptions import PathNotFound
from idgit.models.delta import Delta, DeltaKind
from idgit.models.diff import DiffDetails, LineChange

if TYPE_CHECKING:
    from idgit.core.backend import GitBackend

logger = logging.getLogger(__name__)

# Git reports no content for paths it does not track.
NO_CONTENT_KINDS = frozenset({DeltaKind.UNTRACKED, DeltaKind.IGNORED, DeltaKind.UNREADABLE})


class PathDiffExtractor:
    """Produces DiffDetails for exactly one path.

    Both backend streams are restricted to the target by pathspec and only
    consumed up to the target: change records until the target's record is
    found, patch lines until the target file's hunks are exhausted.
    """

    def __init__(self, backend: "GitBackend", classifier: Optional[DeltaClassifier] = None):
        self._backend = backend
        self._classifier = classifier or DeltaClassifier()

    def extract(self, target: str, related: Sequence[str] = ()) -> DiffDetails:
        """Classification and line records for ``target``.

        ``related`` widens the pathspec, e.g. with the old path of a rename so
        git can still pair both sides.

        Raises:
            PathNotFound: if the target has no uncommitted change.
            BackendFailure: if git fails along the way.
        """
        delta = self.find_delta(target, related)
        baseline = self._backend.resolve_baseline()
        lines = list(self._take_lines(baseline, target, delta))
        logger.debug("Extracted %d line(s) for %s", len(lines), target)
        return DiffDetails(delta=delta, lines=lines)

    def find_delta(self, target: str, related: Sequence[str] = ()) -> Delta:
        pathspecs = [target] + [path for path in related if path != target]
        for record in self._backend.iter_changes(pathspecs=pathspecs):
            if record.path == target:
                logger.debug("Matched %s as %s", target, record.status.value)
                return self._classifier.classify(record)
        raise PathNotFound(target)

    def _take_lines(self, baseline: str, target: str, delta: Delta) -> Iterator[LineChange]:
        if delta.kind in NO_CONTENT_KINDS:
            return

        pathspecs: List[str] = [target]
        if delta.kind in (DeltaKind.RENAMED, DeltaKind.COPIED):
            old_path = delta.old.rel_path
            if old_path and old_path != target:
                pathspecs.append(old_path)

        matched = False
        for path, line in self._backend.iter_patch_lines(baseline, pathspecs):
            if path == target:
                matched = True
                yield line
            elif matched:
                # Past the target's last hunk.
                break
