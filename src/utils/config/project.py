"""Project configuration.

Built-in defaults, optionally overridden section by section from a
``project_config.yaml`` at the repository root.
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG = {
    "solver": {
        "x_min": 0.0,
        "x_max": 2.0,
        "y_min": 0.0,
        "y_max": 2.0,
        "stretching": 1.0,
        "problem": "sine",
        "tolerance": 1e-4,
        "max_iter": None,
        "communicator": "sendrecv",
        "enforce_rank_bound": True,
        "use_numba": False,
    },
    "logging": {
        "level": "INFO",
        "log_dir": None,
    },
}


def get_repo_root() -> Path:
    """Closest ancestor directory of this file holding a pyproject.toml.

    Returns
    -------
    Path
        Path to repository root.
    """
    here = Path(__file__).resolve()
    for candidate in here.parents:
        if (candidate / "pyproject.toml").is_file():
            return candidate
    # src/utils/config/project.py -> repository root
    return here.parents[3]


def load_project_config(
    config_name: str = "project_config.yaml", config_path: Optional[Path] = None
) -> Dict[str, Any]:
    """Read the YAML project configuration on top of ``DEFAULT_CONFIG``.

    Parameters
    ----------
    config_name : str
        File name looked up in the repository root.
    config_path : Path, optional
        Explicit file to read instead of ``<repo root>/<config_name>``.

    Returns
    -------
    dict
        Defaults with each section updated from the file (if present).

    Raises
    ------
    FileNotFoundError
        If ``config_path`` is given but does not name a file. A missing
        repo-root file just leaves the defaults.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {path}")
    else:
        path = get_repo_root() / config_name
        if not path.exists():
            return config

    overrides = yaml.safe_load(path.read_text()) or {}
    for section, values in overrides.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values
    return config


def get_config_section(section: str, config_path: Optional[Path] = None) -> Dict[str, Any]:
    """One section of the project configuration ({} when missing)."""
    return load_project_config(config_path=config_path).get(section, {})
