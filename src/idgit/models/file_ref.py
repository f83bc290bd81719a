"""FileRef model: one side of a changed path."""

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from pydantic import BaseModel

from idgit.exceptions import MissingId, MissingPath

if TYPE_CHECKING:
    from idgit.core.repository import Repo


class FileRef(BaseModel):
    """Identity of one side of a changed path.

    ``content_id`` is the hex object id, or None when the side does not exist
    in the object database (e.g. the old side of an added file, or working
    tree content git has not hashed). ``rel_path`` is the posix path relative
    to the working tree as git reports it, so untracked directories keep
    their trailing slash.
    """

    content_id: Optional[str] = None
    rel_path: Optional[str] = None
    size: int = 0

    model_config = {"frozen": True}

    def id_required(self) -> str:
        if self.content_id is None:
            raise MissingId(self)
        return self.content_id

    def rel_path_required(self) -> str:
        if self.rel_path is None:
            raise MissingPath(self)
        return self.rel_path

    def abs_path(self, repo: Union["Repo", Path, str]) -> Optional[Path]:
        """Resolve the path against a repository (or its working tree root)."""
        if self.rel_path is None:
            return None
        root = repo.path if hasattr(repo, "path") else Path(repo)
        return Path(root) / self.rel_path

    def __str__(self) -> str:
        return self.rel_path if self.rel_path is not None else f"<{self.content_id}>"
