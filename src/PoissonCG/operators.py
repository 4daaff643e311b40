"""Discrete operators on the local band of one process."""

import numpy as np

from .geometry import GridModel
from .kernels import NumPyKernel


class ApproximateOperations:
    """Laplacian, inner product and norms over a local grid.

    Interior means every local cell except the outermost rows and columns;
    those hold either halo data or global boundary values.

    Parameters
    ----------
    grid : GridModel
        Local grid geometry.
    kernel : NumPyKernel or NumbaKernel, optional
        Stencil implementation (default: NumPyKernel).
    """

    def __init__(self, grid: GridModel, kernel=None):
        self.grid = grid
        self.kernel = kernel if kernel is not None else NumPyKernel()

    def laplacian(self, values: np.ndarray, out: np.ndarray = None) -> np.ndarray:
        """Negated discrete Laplacian; outermost rows and columns stay zero."""
        if out is None:
            out = np.zeros_like(values)
        g = self.grid
        self.kernel.laplacian(
            values, out, g.x_steps, g.y_steps, g.x_average_steps, g.y_average_steps
        )
        return out

    def inner_product(self, a: np.ndarray, b: np.ndarray) -> float:
        """Local partial sum of ``ax[i] * ay[j] * a[i, j] * b[i, j]``."""
        g = self.grid
        return self.kernel.inner_product(a, b, g.x_average_steps, g.y_average_steps)

    def energy_norm(self, a: np.ndarray) -> float:
        """``sqrt((a, a))``; only a global norm once the product is reduced."""
        return float(np.sqrt(self.inner_product(a, a)))

    @staticmethod
    def max_norm(a: np.ndarray) -> float:
        """Largest absolute value over the whole local array, halo included."""
        return float(np.max(np.abs(a))) if a.size else 0.0
