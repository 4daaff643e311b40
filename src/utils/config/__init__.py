"""Configuration utilities.

This package contains configuration utilities:
- project: repository root and YAML project configuration
- log: per-rank logging setup
"""

from .project import get_repo_root, load_project_config, get_config_section
from .log import setup_logging

__all__ = ["get_repo_root", "load_project_config", "get_config_section", "setup_logging"]
