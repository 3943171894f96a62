"""Scaffold configuration."""

from .loader import find_config_file, load_config
from .models import ActivityLogConfig, ScaffoldConfig, ScaffoldOptions

__all__ = [
    "ActivityLogConfig",
    "ScaffoldConfig",
    "ScaffoldOptions",
    "find_config_file",
    "load_config",
]
