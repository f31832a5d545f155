"""Load smexplorer defaults from TOML (smexplorer.toml).

Config file is looked up in order:
  1. The path passed explicitly (the CLI's --config)
  2. Path in SMEXPLORER_CONFIG env var (if set)
  3. smexplorer.toml in the current working directory

If no file is found, built-in defaults are used. Example:

    only_mapped = true
    output_format = "tsv"
    log_level = "DEBUG"

    [[replace]]
    pattern = "^webpack:///"
    replacement = ""
"""

import os
import tomllib
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from smexplorer.errors import ExplorerError
from smexplorer.models import PathRule

CONFIG_ENV_VAR = "SMEXPLORER_CONFIG"
CONFIG_FILE_NAME = "smexplorer.toml"


class ExplorerConfig(BaseModel):
    """Defaults for the command line; flags given on the command line win."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    only_mapped: bool = Field(False, description="Leave the <unmapped> bucket out of reports")
    no_root: bool = Field(False, description="Do not strip the common path prefix")
    output_format: Literal["html", "json", "tsv"] = Field("html", description="Report format")
    log_level: str = Field("WARNING", description="Logging level name for the smexplorer logger")
    replace: List[PathRule] = Field(default_factory=list, description="Ordered find/replace rules")


def _default_config_paths(explicit: Optional[Path] = None) -> list[Path]:
    """Return paths to check for smexplorer.toml (first existing wins)."""
    paths: list[Path] = []
    if explicit is not None:
        paths.append(explicit)
    if os.environ.get(CONFIG_ENV_VAR):
        paths.append(Path(os.environ[CONFIG_ENV_VAR]))
    paths.append(Path.cwd() / CONFIG_FILE_NAME)
    return paths


def load_config(path: Optional[Path] = None) -> ExplorerConfig:
    """Load the first config file found, or the defaults.

    Raises:
        ExplorerError: an explicitly requested file is missing, or a config
            file is not valid TOML or has unknown/invalid keys.
    """
    if path is not None and not path.is_file():
        raise ExplorerError(f"config file not found: {path}")

    for candidate in _default_config_paths(path):
        if not candidate.is_file():
            continue
        try:
            with open(candidate, "rb") as f:
                data = tomllib.load(f)
            return ExplorerConfig.model_validate(data)
        except (tomllib.TOMLDecodeError, ValidationError) as exc:
            raise ExplorerError(f"invalid config file {candidate}: {exc}") from exc
    return ExplorerConfig()
