"""Tests for IdgitConfig loading."""

import json

import pytest
from pydantic import ValidationError

from idgit import Repo
from idgit.config import CONFIG_FILE_NAME, IdgitConfig
from idgit.exceptions import ConfigError


def test_defaults():
    config = IdgitConfig()

    assert config.context_lines == 3
    assert config.include_untracked
    assert config.include_ignored
    assert config.detect_renames
    assert config.history_limit is None


def test_missing_file_gives_defaults(tmp_path):
    assert IdgitConfig.load(tmp_path) == IdgitConfig()


def test_save_and_load(tmp_path):
    config = IdgitConfig(context_lines=1, history_limit=5)

    saved = config.save(tmp_path)

    assert saved.name == CONFIG_FILE_NAME
    assert IdgitConfig.load(tmp_path) == config


def test_unknown_key_is_rejected(tmp_path):
    (tmp_path / CONFIG_FILE_NAME).write_text(json.dumps({"colour": "blue"}))

    with pytest.raises(ConfigError):
        IdgitConfig.load(tmp_path)


def test_invalid_json_is_rejected(tmp_path):
    (tmp_path / CONFIG_FILE_NAME).write_text("{not json")

    with pytest.raises(ConfigError):
        IdgitConfig.load(tmp_path)


def test_negative_context_is_invalid():
    with pytest.raises(ValidationError):
        IdgitConfig(context_lines=-1)


def test_repo_reads_config_from_git_dir(sample_repo):
    IdgitConfig(history_limit=1, include_untracked=False).save(sample_repo.git.git_dir)
    sample_repo.set_file("new.txt", b"x\n")

    with Repo.open(sample_repo.path) as repo:
        assert repo.config.history_limit == 1
        assert repo.uncommitted() == []


def test_repo_open_with_broken_config(sample_repo):
    (sample_repo.path / ".git" / CONFIG_FILE_NAME).write_text("[]")

    with pytest.raises(ConfigError):
        Repo.open(sample_repo.path)


def test_explicit_config_wins_over_file(sample_repo):
    IdgitConfig(context_lines=0).save(sample_repo.git.git_dir)

    with Repo.open(sample_repo.path, IdgitConfig(context_lines=7)) as repo:
        assert repo.config.context_lines == 7
