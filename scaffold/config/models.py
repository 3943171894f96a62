"""Configuration models for scaffold runs."""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from pydantic.alias_generators import to_camel

from scaffold.core.phase_registry import DEFAULT_REGISTRY


class _CamelConfig(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


class ScaffoldOptions(_CamelConfig):
    """Options that change which phases run."""

    skip_phases: List[int] = Field(
        default_factory=list, description="Phase numbers to bypass"
    )

    @field_validator("skip_phases")
    @classmethod
    def validate_skip_phases(cls, v: List[int]) -> List[int]:
        """Validate skip phases are registry phase numbers."""
        seen: List[int] = []
        for number in v:
            if not DEFAULT_REGISTRY.contains(number):
                raise ValueError(
                    f"skipPhases entry {number} is outside 1-{len(DEFAULT_REGISTRY)}"
                )
            if number not in seen:
                seen.append(number)
        return seen


class ActivityLogConfig(_CamelConfig):
    """Activity log configuration."""

    enabled: bool = Field(default=True, description="Write the activity log")
    output_dir: str = Field(
        default=".scaffold/logs", description="Log directory, relative to workspace"
    )


class ScaffoldConfig(_CamelConfig):
    """Main scaffold configuration.

    Unknown keys are kept so the full project configuration can be
    snapshotted into the state file.
    """

    project_name: Optional[str] = Field(default=None, description="Project name")
    scaffold_options: ScaffoldOptions = Field(
        default_factory=ScaffoldOptions, description="Phase selection options"
    )
    docs_dir: str = Field(
        default="Masterguide/scaffolding",
        description="Directory holding the phase instruction documents",
    )
    activity_log: ActivityLogConfig = Field(
        default_factory=ActivityLogConfig, description="Activity log configuration"
    )

    _source: Optional[Path] = PrivateAttr(default=None)

    @property
    def source(self) -> Optional[Path]:
        """File the configuration was read from, if any."""
        return self._source

    @property
    def skip_phases(self) -> List[int]:
        return list(self.scaffold_options.skip_phases)

    def snapshot(self) -> Dict[str, Any]:
        """Configuration as stored in the state file."""
        return self.model_dump(by_alias=True, mode="json")

    def get_log_dir(self, workspace: Path) -> Path:
        """Get the activity log directory for a workspace."""
        log_dir = Path(self.activity_log.output_dir).expanduser()
        if not log_dir.is_absolute():
            log_dir = Path(workspace) / log_dir
        return log_dir


def resolve_env_vars(obj: Any) -> Any:
    """Recursively resolve environment variables in configuration."""
    if isinstance(obj, dict):
        return {key: resolve_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [resolve_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return _resolve_env_var_string(obj)
    else:
        return obj


def _resolve_env_var_string(value: str) -> str:
    """Resolve environment variables in a string."""
    # Pattern for ${VAR_NAME} or ${VAR_NAME:default_value}
    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replace_var(match):
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.getenv(var_name, default_value)

    return re.sub(pattern, replace_var, value)
