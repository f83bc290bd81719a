"""Configuration for idgit repositories."""

from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError

from idgit.exceptions import ConfigError

CONFIG_FILE_NAME = "idgit.json"


class IdgitConfig(BaseModel):
    """Options controlling how changes are listed and diffed.

    The file lives inside the git directory (``.git/idgit.json``) so it never
    shows up as an uncommitted change itself.
    """

    context_lines: int = Field(default=3, ge=0)
    include_untracked: bool = True
    include_ignored: bool = True
    detect_renames: bool = True
    history_limit: Optional[int] = Field(default=None, ge=1)

    model_config = {"frozen": True, "extra": "forbid"}

    @classmethod
    def load(cls, git_dir: Union[str, Path]) -> "IdgitConfig":
        """Load the config from a git directory, falling back to defaults."""
        config_file = Path(git_dir) / CONFIG_FILE_NAME
        if not config_file.exists():
            return cls()

        try:
            return cls.model_validate_json(config_file.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read {config_file}: {e}") from e
        except ValidationError as e:
            raise ConfigError(f"Invalid config in {config_file}: {e}") from e

    def save(self, git_dir: Union[str, Path]) -> Path:
        config_file = Path(git_dir) / CONFIG_FILE_NAME
        config_file.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return config_file
