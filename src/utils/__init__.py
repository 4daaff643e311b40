"""Utility modules shared by the solver entry points.

Submodules:
- config: Project configuration, repository root, logging setup
- cli: Argument parser helpers

Import examples:
    from utils.config import get_repo_root, load_project_config, setup_logging
    from utils.cli import create_parser
"""

from . import cli, config

# Re-export common config functions for convenience
from .config import get_repo_root

__all__ = [
    "cli",
    "config",
    "get_repo_root",
]
