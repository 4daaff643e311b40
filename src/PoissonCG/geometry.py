"""Structured, possibly non-uniform, rectangular grid.

Coordinates along each axis follow

    t_i = i / (N - 1),   x_i = x_min + (x_max - x_min) * g(t_i)
    g(t) = ((1 + t)**q - 1) / (2**q - 1)

where ``q`` is the stretching exponent; ``q = 1`` gives uniform spacing.
Only the index range a rank needs (its owned rows plus halo, all columns)
is materialised.
"""

from __future__ import annotations

import numpy as np

from .datastructures import GlobalParams, RowPartition


def axis_coordinates(
    lower: float, upper: float, n_points: int, start: int, stop: int, stretching: float = 1.0
) -> np.ndarray:
    """Coordinates of global indices ``start..stop`` (inclusive) on one axis."""
    t = np.arange(start, stop + 1, dtype=np.float64) / (n_points - 1)
    if stretching != 1.0:
        t = ((1.0 + t) ** stretching - 1.0) / (2.0**stretching - 1.0)
    return lower + (upper - lower) * t


class GridModel:
    """Local coordinate arrays and the step sizes derived from them.

    ``x`` runs along local rows and ``y`` along columns. Forward steps are
    ``h[i] = c[i+1] - c[i]``; average steps ``(h[i-1] + h[i]) / 2`` exist for
    interior indices only.
    """

    def __init__(self, x: np.ndarray, y: np.ndarray):
        self.x = np.asarray(x, dtype=np.float64)
        self.y = np.asarray(y, dtype=np.float64)
        if self.x.size < 2 or self.y.size < 2:
            raise ValueError("A grid axis needs at least two points")
        if np.any(np.diff(self.x) <= 0) or np.any(np.diff(self.y) <= 0):
            raise ValueError("Grid coordinates must be strictly increasing")

        self.x_steps = np.diff(self.x)
        self.y_steps = np.diff(self.y)
        self.x_average_steps = 0.5 * (self.x_steps[:-1] + self.x_steps[1:])
        self.y_average_steps = 0.5 * (self.y_steps[:-1] + self.y_steps[1:])

    @classmethod
    def from_partition(cls, params: GlobalParams, partition: RowPartition) -> "GridModel":
        """Materialise the rows ``partition`` holds (halo included) and all columns."""
        x = axis_coordinates(
            params.x_min,
            params.x_max,
            partition.n_rows,
            partition.first_row_with_halo,
            partition.last_row_with_halo,
            params.stretching,
        )
        y = axis_coordinates(
            params.y_min,
            params.y_max,
            partition.n_cols,
            partition.first_col,
            partition.last_col,
            params.stretching,
        )
        return cls(x, y)

    @property
    def shape(self) -> tuple[int, int]:
        return (self.x.size, self.y.size)

    def meshgrid(self) -> tuple[np.ndarray, np.ndarray]:
        """Coordinate matrices indexed (row, column)."""
        return np.meshgrid(self.x, self.y, indexing="ij")

    def x_step(self, i: int) -> float:
        """Step between rows ``i`` and ``i + 1``."""
        return float(self.x_steps[_checked(i, self.x_steps.size)])

    def y_step(self, j: int) -> float:
        """Step between columns ``j`` and ``j + 1``."""
        return float(self.y_steps[_checked(j, self.y_steps.size)])

    def x_average_step(self, i: int) -> float:
        """Mean of the two steps adjacent to interior row ``i``."""
        return float(self.x_average_steps[_checked(i - 1, self.x_average_steps.size)])

    def y_average_step(self, j: int) -> float:
        """Mean of the two steps adjacent to interior column ``j``."""
        return float(self.y_average_steps[_checked(j - 1, self.y_average_steps.size)])


def _checked(index: int, size: int) -> int:
    if not 0 <= index < size:
        raise IndexError(f"Grid index out of range for step lookup: {index}")
    return index
