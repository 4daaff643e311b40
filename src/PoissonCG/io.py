"""Matrix output."""

from pathlib import Path

import numpy as np

from .errors import OutputError


def format_matrix(values: np.ndarray) -> str:
    """One line per row, values separated by ``", "``, no trailing newline."""
    return "\n".join(", ".join(repr(float(v)) for v in row) for row in np.atleast_2d(values))


def write_matrix(path, values: np.ndarray):
    """Write ``values`` to ``path``; raise OutputError if it cannot be written."""
    try:
        Path(path).write_text(format_matrix(values))
    except OSError as e:
        raise OutputError(f"Incorrect output file {path}: {e.strerror or e}") from e
