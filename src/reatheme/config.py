"""Build file (reatheme.yaml) loading."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from reatheme.archive import DEFAULT_COMPRESSION_LEVEL
from reatheme.errors import ConfigError

CONFIG_FILENAME = "reatheme.yaml"


class BuildConfig(BaseModel):
    """Build settings; relative paths are relative to the build file."""

    input: Optional[Path] = None
    output: Optional[Path] = None
    name: Optional[str] = None
    overwrite: bool = False
    compression_level: int = Field(default=DEFAULT_COMPRESSION_LEVEL, ge=0, le=9)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _check_name(self):
        if self.name is not None and not self.name.strip():
            raise ValueError("name must not be empty")
        return self

    def relative_to(self, base: Path) -> "BuildConfig":
        """Return a copy with input/output anchored at `base`."""
        update = {}
        if self.input is not None and not self.input.is_absolute():
            update["input"] = base / self.input
        if self.output is not None and not self.output.is_absolute():
            update["output"] = base / self.output
        return self.model_copy(update=update)


def load_config(path: Path) -> BuildConfig:
    """Load and validate a build file."""
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML: {exc}", source=path) from exc

    if not isinstance(data, dict):
        raise ConfigError("Build file must be a mapping", source=path)

    try:
        config = BuildConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid build file: {exc}", source=path) from exc

    return config.relative_to(path.parent)


def find_config(input_path: Optional[Path]) -> Optional[Path]:
    """Find reatheme.yaml next to the input, or in the current directory."""
    candidates = []
    if input_path is not None:
        candidates.append(input_path.parent / CONFIG_FILENAME)
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None
