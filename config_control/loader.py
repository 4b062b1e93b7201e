"""
File-backed configuration source.

Loads JSON or TOML configuration files, optionally validating them into
a pydantic model.
"""

import json
import tomllib
from pathlib import Path
from typing import Any, Optional, Type, Union

from pydantic import BaseModel

from .errors import ConfigLoadError


class FileSource:
    """Loads configuration from a TOML or JSON file."""

    def __init__(self, path: Union[str, Path], model: Optional[Type[BaseModel]] = None):
        """
        Initialize file source.

        Args:
            path: Configuration file (.json or .toml)
            model: Optional pydantic model the document is validated into
        """
        self.path = Path(path)
        self.model = model

    def identity(self) -> str:
        """Return the file name to watch."""
        return str(self.path)

    def load(self) -> Any:
        """
        Load and parse the configuration file.

        Returns:
            Parsed document, or a model instance when a model is set

        Raises:
            ConfigLoadError: If the file format is not supported
            FileNotFoundError: If the file doesn't exist
            json.JSONDecodeError: If JSON syntax is invalid
            tomllib.TOMLDecodeError: If TOML syntax is invalid
            pydantic.ValidationError: If the document does not fit the model
        """
        suffix = self.path.suffix.lower()

        if suffix == ".json":
            with open(self.path, "r") as f:
                data = json.load(f)
        elif suffix == ".toml":
            with open(self.path, "rb") as f:
                data = tomllib.load(f)
        else:
            raise ConfigLoadError(self.identity(), f"unsupported configuration format '{suffix}'")

        if self.model is not None:
            return self.model.model_validate(data)
        return data
