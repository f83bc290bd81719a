"""Shared fixtures: real git repositories in temporary directories."""

import tempfile
from pathlib import Path

import pytest
from git import Repo as GitRepo


class SampleRepo:
    """A scratch git repository driven through GitPython."""

    def __init__(self, path: Path):
        self.path = path
        self.git = GitRepo.init(path)
        with self.git.config_writer() as config:
            config.set_value("user", "name", "Test User")
            config.set_value("user", "email", "test@example.com")

    def set_file(self, name: str, contents: bytes) -> Path:
        file_path = self.path / name
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(contents)
        return file_path

    def create_dir(self, name: str) -> Path:
        dir_path = self.path / name
        dir_path.mkdir(parents=True)
        return dir_path

    def delete_file(self, name: str) -> None:
        (self.path / name).unlink()

    def add(self, *names: str) -> None:
        self.git.index.add(list(names))

    def commit_all(self, message: str = "Make some change") -> str:
        self.git.git.add("--all")
        return self.git.index.commit(message).hexsha


@pytest.fixture
def sample_repo():
    """A freshly initialised repository with no commits."""
    with tempfile.TemporaryDirectory() as temp_dir:
        sample = SampleRepo(Path(temp_dir))
        yield sample
        sample.git.close()


@pytest.fixture
def repo(sample_repo):
    """An idgit Repo opened on ``sample_repo``."""
    from idgit import Repo

    opened = Repo.open(sample_repo.path)
    yield opened
    opened.close()
