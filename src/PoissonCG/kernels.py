"""Finite-difference kernels on one local band.

Simple kernel implementations - grid bookkeeping is handled by
``ApproximateOperations``. Every kernel receives the local forward steps
``hx``/``hy`` and interior average steps ``ax``/``ay`` of the band.

The y term of the stencil looks up ``hy`` by the row index ``i`` (not the
column index ``j``). Both kernels keep that convention.
"""

import numpy as np
import numba
from numba import njit, prange


@njit(parallel=True)
def _laplacian_numba(f, out, hx, hy, ax, ay):
    """Numba JIT implementation of the negated 5-point Laplacian."""
    for i in prange(1, f.shape[0] - 1):
        for j in range(1, f.shape[1] - 1):
            x_part = (f[i, j] - f[i - 1, j]) / hx[i - 1] - (f[i + 1, j] - f[i, j]) / hx[i]
            y_part = (f[i, j] - f[i, j - 1]) / hy[i - 1] - (f[i, j + 1] - f[i, j]) / hy[i]
            out[i, j] = x_part / ax[i - 1] + y_part / ay[j - 1]


@njit
def _inner_product_numba(a, b, ax, ay):
    """Numba JIT implementation of the weighted interior inner product."""
    total = 0.0
    for i in range(1, a.shape[0] - 1):
        for j in range(1, a.shape[1] - 1):
            total += ax[i - 1] * ay[j - 1] * a[i, j] * b[i, j]
    return total


class NumPyKernel:
    """NumPy-based stencil kernel."""

    def __init__(self, specified_numba_threads: int = 1):
        self.observed_numba_threads = None

    def laplacian(self, f, out, hx, hy, ax, ay):
        """Write ``-laplace(f)`` into the interior of ``out``."""
        rows = f.shape[0]
        c = f[1:-1, 1:-1]
        x_part = (c - f[:-2, 1:-1]) / hx[: rows - 2, None] - (
            f[2:, 1:-1] - c
        ) / hx[1 : rows - 1, None]
        y_part = (c - f[1:-1, :-2]) / hy[: rows - 2, None] - (
            f[1:-1, 2:] - c
        ) / hy[1 : rows - 1, None]
        out[1:-1, 1:-1] = x_part / ax[:, None] + y_part / ay[None, :]

    def inner_product(self, a, b, ax, ay) -> float:
        """Weighted sum over interior cells."""
        weights = ax[:, None] * ay[None, :]
        return float(np.sum(weights * a[1:-1, 1:-1] * b[1:-1, 1:-1]))

    def warmup(self, warmup_size: int = 10):
        """No-op for NumPy kernel."""
        pass


class NumbaKernel:
    """Numba JIT-compiled stencil kernel."""

    def __init__(self, specified_numba_threads: int = 1):
        if specified_numba_threads is not None:
            # Capped by NUMBA_NUM_THREADS
            numba.set_num_threads(specified_numba_threads)
        self.observed_numba_threads = numba.get_num_threads()

    def laplacian(self, f, out, hx, hy, ax, ay):
        """Write ``-laplace(f)`` into the interior of ``out``."""
        _laplacian_numba(f, out, hx, hy, ax, ay)

    def inner_product(self, a, b, ax, ay) -> float:
        """Weighted sum over interior cells."""
        return float(_inner_product_numba(a, b, ax, ay))

    def warmup(self, warmup_size: int = 10):
        """Trigger JIT compilation with a small problem."""
        h = np.full(warmup_size - 1, 1.0 / (warmup_size - 1))
        avg = h[1:]
        f = np.random.randn(warmup_size, warmup_size)
        out = np.zeros_like(f)
        _laplacian_numba(f, out, h, h, avg, avg)
        _inner_product_numba(f, out, avg, avg)


def create_kernel(use_numba: bool = False, numba_threads: int = 1):
    """Factory: NumbaKernel if ``use_numba`` else NumPyKernel."""
    if use_numba:
        return NumbaKernel(specified_numba_threads=numba_threads)
    return NumPyKernel()
