"""Configuration loading."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from scaffold.config.models import ScaffoldConfig, resolve_env_vars
from scaffold.core.exceptions import ConfigurationError

CONFIG_FILE_NAMES = (
    "scaffold-config.json",
    "scaffold-config.yaml",
    "scaffold-config.yml",
)


def load_config(
    workspace: Optional[Path] = None, config_path: Optional[Path] = None
) -> ScaffoldConfig:
    """Load scaffold configuration for a workspace.

    An explicit ``config_path`` wins; otherwise the first of
    ``CONFIG_FILE_NAMES`` found in the workspace root is used. With no file at
    all the defaults are returned.

    Args:
        workspace: Workspace root (default: current directory)
        config_path: Explicit path to a configuration file

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the file cannot be read, parsed or validated
    """
    path = config_path or find_config_file(workspace or Path.cwd())
    if path is None:
        return ScaffoldConfig()

    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    data = resolve_env_vars(_load_config_file(path))

    try:
        config = ScaffoldConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed for {path}: {e}"
        ) from e

    config._source = path
    return config


def find_config_file(workspace: Path) -> Optional[Path]:
    """Return the first configuration file present in the workspace root."""
    for name in CONFIG_FILE_NAMES:
        candidate = Path(workspace) / name
        if candidate.is_file():
            return candidate
    return None


def _load_config_file(file_path: Path) -> Dict[str, Any]:
    """Load and parse a JSON or YAML configuration file.

    Args:
        file_path: Path to configuration file

    Returns:
        Parsed data as dictionary

    Raises:
        ConfigurationError: If file cannot be loaded or parsed
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            if file_path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {file_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {file_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read {file_path}: {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file must contain an object, got {type(data).__name__}"
        )

    return data
