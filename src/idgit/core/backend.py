"""GitPython adapter that feeds the change model.

Everything idgit needs from git goes through ``GitBackend``: the stream of
change records, the patch lines of a path, index mutations, the ignore-rule
query and baseline resolution.
"""

import logging
import os
import stat
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import git
from git import Repo as GitRepo
from git.util import hex_to_bin

from idgit.config import IdgitConfig
from idgit.core.patch import PatchParser, is_null_oid
from idgit.exceptions import BackendFailure, IoFailure
from idgit.models.diff import LineChange

logger = logging.getLogger(__name__)

NULL_OID = "0" * 40
GITLINK_MODE = "160000"


class ChangeStatus(str, Enum):
    """Status tag of a raw change record."""

    UNMODIFIED = "unmodified"
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


@dataclass(frozen=True)
class FileSide:
    """One side of a raw change record, as reported by git."""

    oid: str
    path: Optional[str]
    size: int = 0


@dataclass(frozen=True)
class ChangeRecord:
    """A raw change: status tag plus the sides git reported."""

    status: ChangeStatus
    old: Optional[FileSide] = None
    new: Optional[FileSide] = None

    @property
    def nfiles(self) -> int:
        return (self.old is not None) + (self.new is not None)

    @property
    def path(self) -> Optional[str]:
        side = self.new if self.new is not None else self.old
        return side.path if side is not None else None


@dataclass
class StatusEntry:
    """One entry of ``git status --porcelain=v2 -z``."""

    kind: str  # 1, 2, u, ? or !
    path: str
    xy: str = ".."
    head_mode: str = "000000"
    worktree_mode: str = "000000"
    head_oid: str = NULL_OID
    index_oid: str = NULL_OID
    orig_path: Optional[str] = None
    extra: List[str] = field(default_factory=list)


def literal_pathspec(path: str) -> str:
    return f":(literal){path}"


def parse_porcelain_v2(output: str) -> Iterator[StatusEntry]:
    """Parse NUL-separated porcelain v2 status output."""
    fields = iter(output.split("\0"))
    for entry in fields:
        if not entry or entry.startswith("#"):
            continue

        kind = entry[0]
        if kind in "?!":
            yield StatusEntry(kind=kind, path=entry[2:])
        elif kind == "1":
            parts = entry.split(" ", 8)
            if len(parts) < 9:
                logger.warning("Unexpected git status entry: %s", entry[:100])
                continue
            _, xy, _sub, m_head, _m_index, m_worktree, h_head, h_index, path = parts
            yield StatusEntry(
                kind=kind,
                path=path,
                xy=xy,
                head_mode=m_head,
                worktree_mode=m_worktree,
                head_oid=h_head,
                index_oid=h_index,
            )
        elif kind == "2":
            parts = entry.split(" ", 9)
            if len(parts) < 10:
                logger.warning("Unexpected git status entry: %s", entry[:100])
                continue
            _, xy, _sub, m_head, _m_index, m_worktree, h_head, h_index, _score, path = parts
            # The rename source follows as its own NUL-terminated field.
            yield StatusEntry(
                kind=kind,
                path=path,
                xy=xy,
                head_mode=m_head,
                worktree_mode=m_worktree,
                head_oid=h_head,
                index_oid=h_index,
                orig_path=next(fields, None),
            )
        elif kind == "u":
            parts = entry.split(" ", 10)
            if len(parts) < 11:
                logger.warning("Unexpected git status entry: %s", entry[:100])
                continue
            _, xy, _sub, _m1, m_ours, _m3, m_worktree, _h1, h_ours, _h3, path = parts
            yield StatusEntry(
                kind=kind,
                path=path,
                xy=xy,
                head_mode=m_ours,
                worktree_mode=m_worktree,
                head_oid=h_ours,
            )
        else:
            logger.warning("Unexpected git status entry: %s", entry[:100])


def combine_status(xy: str) -> ChangeStatus:
    """Fold index (X) and worktree (Y) states into baseline-vs-working status.

    A staged state wins over the worktree state, except that a type change
    or a modification on either side is still reported.
    """
    x, y = xy[0], xy[1]
    if x == "A":
        # Added to the index, then removed from disk: absent on both sides.
        if y == "D":
            return ChangeStatus.UNMODIFIED
        return ChangeStatus.ADDED
    if x == "R":
        return ChangeStatus.RENAMED
    if x == "C":
        return ChangeStatus.COPIED
    if x == "D":
        return ChangeStatus.DELETED
    if "T" in (x, y):
        return ChangeStatus.TYPECHANGE
    if y == "D":
        return ChangeStatus.DELETED
    if "M" in (x, y):
        return ChangeStatus.MODIFIED
    return ChangeStatus.UNMODIFIED


class GitBackend:
    """Drives git (through GitPython) for one non-bare repository."""

    def __init__(self, repo: GitRepo, config: Optional[IdgitConfig] = None):
        if repo.bare or repo.working_tree_dir is None:
            raise BackendFailure(f"Repository at {repo.git_dir} has no working tree")
        self.repo = repo
        self.config = config or IdgitConfig()
        self._empty_tree: Optional[str] = None

    @classmethod
    def open(
        cls, path: Union[str, Path], config: Optional[IdgitConfig] = None
    ) -> "GitBackend":
        """Open the repository whose working tree is at ``path``."""
        try:
            repo = GitRepo(path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise BackendFailure(f"No git repository found in {path}") from e

        try:
            if config is None:
                config = IdgitConfig.load(repo.git_dir)
            return cls(repo, config)
        except Exception:
            repo.close()
            raise

    @property
    def path(self) -> Path:
        return Path(self.repo.working_tree_dir)

    @property
    def git_dir(self) -> Path:
        return Path(self.repo.git_dir)

    def close(self) -> None:
        self.repo.close()

    def run_git_command(self, command: str, *args, **kwargs):
        """Run a git command, turning git failures into BackendFailure."""
        logger.debug("git %s %s", command, " ".join(str(arg) for arg in args))
        try:
            git_method = getattr(self.repo.git, command)
            return git_method(*args, **kwargs)
        except git.exc.GitCommandError as e:
            raise BackendFailure(f"Git command failed: {e}") from e

    # Baseline

    def head_is_unborn(self) -> bool:
        """True when HEAD points at a branch with no commits yet."""
        head = self.repo.head
        if head.is_detached:
            return False
        return not head.reference.is_valid()

    def resolve_baseline(self) -> str:
        """Tree id that working state is compared against."""
        if self.head_is_unborn():
            logger.debug("HEAD is unborn, comparing against the empty tree")
            return self.empty_tree()
        try:
            return self.repo.head.commit.tree.hexsha
        except (ValueError, git.exc.GitError, git.exc.ODBError) as e:
            raise BackendFailure(f"Cannot resolve HEAD: {e}") from e

    def empty_tree(self) -> str:
        """Id of the empty tree, written to the object database on first use."""
        if self._empty_tree is None:
            # mktree reads an empty listing from stdin.
            self._empty_tree = self.run_git_command("mktree").strip()
        return self._empty_tree

    # Change records

    def iter_changes(self, pathspecs: Sequence[str] = ()) -> Iterator[ChangeRecord]:
        """Change records of the working state, ordered by path.

        Unmodified entries never leave this method.
        """
        args = [
            "--porcelain=v2",
            "-z",
            "--untracked-files=normal" if self.config.include_untracked else "--untracked-files=no",
            "--ignored=traditional" if self.config.include_ignored else "--ignored=no",
            "--find-renames" if self.config.detect_renames else "--no-renames",
        ]
        if pathspecs:
            args.append("--")
            args.extend(literal_pathspec(p) for p in pathspecs)

        output = self.run_git_command("status", *args)
        records = []
        for entry in parse_porcelain_v2(output):
            record = self._record_for(entry)
            if record.status == ChangeStatus.UNMODIFIED:
                logger.debug("Skipping unmodified entry %s", entry.path)
                continue
            records.append(record)

        records.sort(key=lambda record: record.path or "")
        return iter(records)

    def _record_for(self, entry: StatusEntry) -> ChangeRecord:
        if entry.kind == "?":
            status = ChangeStatus.UNTRACKED
            if not self._is_readable(entry.path):
                status = ChangeStatus.UNREADABLE
            return ChangeRecord(status, new=self._worktree_side(entry.path))
        if entry.kind == "!":
            return ChangeRecord(ChangeStatus.IGNORED, new=self._worktree_side(entry.path))
        if entry.kind == "u":
            return ChangeRecord(
                ChangeStatus.CONFLICTED,
                old=self._object_side(entry.head_oid, entry.path, entry.head_mode),
                new=self._worktree_side(entry.path),
            )

        status = combine_status(entry.xy)
        # The index id only describes the working file when the two agree.
        new_oid = entry.index_oid if entry.xy[1] == "." else NULL_OID

        if status == ChangeStatus.UNMODIFIED:
            return ChangeRecord(status)
        if status == ChangeStatus.ADDED:
            return ChangeRecord(status, new=self._worktree_side(entry.path, new_oid))
        if status == ChangeStatus.DELETED:
            return ChangeRecord(
                status, old=self._object_side(entry.head_oid, entry.path, entry.head_mode)
            )
        old_path = entry.orig_path if entry.orig_path is not None else entry.path
        return ChangeRecord(
            status,
            old=self._object_side(entry.head_oid, old_path, entry.head_mode),
            new=self._worktree_side(entry.path, new_oid),
        )

    def _object_side(self, oid: str, path: str, mode: str) -> FileSide:
        return FileSide(oid=oid, path=path, size=self._object_size(oid, mode))

    def _worktree_side(self, path: str, oid: str = NULL_OID) -> FileSide:
        return FileSide(oid=oid, path=path, size=self._worktree_size(path))

    def _object_size(self, oid: str, mode: str) -> int:
        if is_null_oid(oid) or mode == GITLINK_MODE:
            return 0
        try:
            return self.repo.odb.info(hex_to_bin(oid)).size
        except (ValueError, git.exc.GitError, git.exc.ODBError) as e:
            raise BackendFailure(f"Cannot read object {oid}: {e}") from e

    def _worktree_size(self, path: str) -> int:
        full_path = self.path / path
        try:
            st = os.lstat(full_path)
        except (FileNotFoundError, NotADirectoryError):
            return 0
        except OSError as e:
            raise IoFailure(full_path, e) from e
        if stat.S_ISDIR(st.st_mode):
            return 0
        return st.st_size

    def _is_readable(self, path: str) -> bool:
        return os.access(self.path / path, os.R_OK)

    # Patch lines

    def iter_patch_lines(
        self, baseline: str, pathspecs: Sequence[str]
    ) -> Iterator[Tuple[str, LineChange]]:
        """Line records of ``baseline`` vs the working tree, limited to pathspecs."""
        args = [
            "--no-color",
            "--no-ext-diff",
            "--no-textconv",
            "--full-index",
            "--src-prefix=a/",
            "--dst-prefix=b/",
            f"-U{self.config.context_lines}",
            "--find-renames" if self.config.detect_renames else "--no-renames",
            baseline,
            "--",
        ]
        args.extend(literal_pathspec(p) for p in pathspecs)

        output = self.run_git_command(
            "diff", *args, stdout_as_string=False, strip_newline_in_stdout=False
        )
        parser = PatchParser(read_blob=self.read_blob, read_worktree=self.read_worktree)
        yield from parser.parse(output.splitlines(keepends=True))

    def read_blob(self, oid: str) -> Optional[bytes]:
        try:
            return self.repo.odb.stream(hex_to_bin(oid)).read()
        except (ValueError, git.exc.GitError, git.exc.ODBError) as e:
            raise BackendFailure(f"Cannot read object {oid}: {e}") from e

    def read_worktree(self, path: str) -> Optional[bytes]:
        """Working tree content as git diffs it (link target for symlinks)."""
        full_path = self.path / path
        try:
            if full_path.is_symlink():
                return os.fsencode(os.readlink(full_path))
            if not full_path.is_file():
                return None
            return full_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise IoFailure(full_path, e) from e

    # Index mutations

    def is_ignored(self, path: str) -> bool:
        """Whether git's ignore rules match ``path``, tracked or not."""
        logger.debug("git check-ignore -q --no-index -- %s", path)
        try:
            self.repo.git.check_ignore("-q", "--no-index", "--", path)
        except git.exc.GitCommandError as e:
            # Exit status 1 means no rule matched.
            if e.status == 1:
                return False
            raise BackendFailure(f"Cannot check ignore rules for {path}: {e}") from e
        return True

    def add_to_index(self, path: str) -> None:
        self.run_git_command("add", "--", literal_pathspec(path))

    def remove_from_index(self, path: str) -> None:
        """Reset the index entry of ``path`` to the baseline."""
        if self.head_is_unborn():
            # -f: the staged blob may differ from both the file and the empty baseline.
            self.run_git_command(
                "rm",
                "--cached",
                "-f",
                "-r",
                "-q",
                "--ignore-unmatch",
                "--",
                literal_pathspec(path),
            )
        else:
            self.run_git_command("reset", "-q", "HEAD", "--", literal_pathspec(path))

    def __repr__(self) -> str:
        return f"GitBackend(path={str(self.path)!r})"
