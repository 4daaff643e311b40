"""Conjugate-gradient Poisson solver (single process)."""

import logging
from enum import Enum

import numpy as np

from .base import BaseSolver
from ..datastructures import GlobalMetrics
from ..decomposition import create_partition
from ..geometry import GridModel
from ..kernels import create_kernel
from ..operators import ApproximateOperations

log = logging.getLogger(__name__)


class SolverState(Enum):
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"


class CGSolver(BaseSolver):
    """Conjugate-gradient solver for ``-laplace(u) = F`` with Dirichlet data.

    Runs on the whole grid in one process. ``CGMPISolver`` reuses the same
    iteration with a row band per rank.

    Parameters
    ----------
    N : int
        Grid size (N x N, boundary included).
    model : DifferentialEquationModel, optional
        Forcing and boundary values.
    numba_threads : int
        Number of Numba threads (default: 1).
    **kwargs
        ``GlobalParams`` fields: tolerance, max_iter, stretching, use_numba...
    """

    def __init__(self, N: int, model=None, numba_threads: int = 1, **kwargs):
        super().__init__(N, model=model, **kwargs)

        self.state = None
        self.kernel = create_kernel(self.params.use_numba, numba_threads)
        self._init_partition()
        self.geometry = GridModel.from_partition(self.params, self.partition)
        self.ops = ApproximateOperations(self.geometry, self.kernel)

        g = self.geometry
        log.debug(
            f"local grid {g.shape}: x in [{g.x[0]:.6g}, {g.x[-1]:.6g}], "
            f"y in [{g.y[0]:.6g}, {g.y[-1]:.6g}]"
        )

    def _init_partition(self):
        """Whole grid on a single rank."""
        self.partition = create_partition(self.N, 0, 1)

    def _allocate(self) -> np.ndarray:
        return np.zeros(self.partition.halo_shape, dtype=np.float64)

    def _boundary_mask(self) -> np.ndarray:
        """Local cells that lie on the global boundary."""
        mask = np.zeros(self.partition.halo_shape, dtype=bool)
        mask[:, 0] = mask[:, -1] = True
        if self.partition.is_first:
            mask[0, :] = True
        if self.partition.is_last:
            mask[-1, :] = True
        return mask

    def initialize(self) -> np.ndarray:
        """Set up solution, residual and direction fields.

        Returns the approximate solution: boundary values on the global
        boundary, zero elsewhere.
        """
        X, Y = self.geometry.meshgrid()
        self.f = self.model.forcing(X, Y)

        self.u = self._allocate()
        boundary = self._boundary_mask()
        self.u[boundary] = self.model.boundary(X, Y)[boundary]

        self._time_halo += self._sync_halos(self.u)
        Lu = self.ops.laplacian(self.u)

        self.r = self._allocate()
        self.r[1:-1, 1:-1] = self.f[1:-1, 1:-1] - Lu[1:-1, 1:-1]
        self.d = self.r.copy()
        self.Ld = self._allocate()
        self._rr = self.ops.inner_product(self.r, self.r)

        self.state = SolverState.INITIALIZED
        return self.u

    def solve(self) -> GlobalMetrics:
        """Iterate until the global max increment drops below tolerance."""
        if self.state is None:
            self.initialize()

        self._reset()
        u, r, d, Ld = self.u, self.r, self.d, self.Ld
        ops, tol = self.ops, self.tolerance

        self._barrier()
        t_start = self._get_time()
        self.state = SolverState.ITERATING

        iteration = 0
        while self.max_iter is None or iteration < self.max_iter:
            iteration += 1

            halo_time = self._sync_halos(d)

            t0 = self._get_time()
            ops.laplacian(d, out=Ld)
            numerator = ops.inner_product(r, d)
            denominator = ops.inner_product(Ld, d)
            compute_time = self._get_time() - t0

            alpha = self._global_fraction(numerator, denominator)

            t0 = self._get_time()
            local_increment = abs(alpha) * ops.max_norm(d)
            u[1:-1, 1:-1] += alpha * d[1:-1, 1:-1]
            r[1:-1, 1:-1] -= alpha * Ld[1:-1, 1:-1]
            rr_new = ops.inner_product(r, r)
            compute_time += self._get_time() - t0

            beta = self._global_fraction(rr_new, self._rr)

            t0 = self._get_time()
            d[1:-1, 1:-1] = r[1:-1, 1:-1] + beta * d[1:-1, 1:-1]
            self._rr = rr_new
            compute_time += self._get_time() - t0

            error = self._global_max(local_increment)

            self._time_compute += compute_time
            self._time_halo += halo_time
            self.timeseries.compute_times.append(compute_time)
            self.timeseries.halo_times.append(halo_time)
            self.timeseries.error_history.append(error)
            log.debug(f"iteration {iteration}: alpha={alpha:.6e}, beta={beta:.6e}, error={error:.6e}")

            # beta == 0 only when the residual vanished on every rank
            if error < tol or beta == 0.0:
                self.metrics.converged = True
                self.state = SolverState.CONVERGED
                break

        self.metrics.iterations = iteration
        wall_time = self._get_time() - t_start
        self._finalize(wall_time)

        if self._is_root():
            if self.metrics.converged:
                log.info(
                    f"Converged: {iteration} iterations, increment="
                    f"{self.metrics.final_increment:.3e}, time={wall_time:.3f}s"
                )
            else:
                log.warning(
                    f"Not converged after {iteration} iterations, increment="
                    f"{self.metrics.final_increment:.3e}"
                )
        return self.metrics

    def exact_solution(self) -> np.ndarray:
        """Closed-form solution of the model on the local grid."""
        X, Y = self.geometry.meshgrid()
        return self.model.solution(X, Y)

    def compute_error(self) -> float:
        """Global max-norm error of the approximation against the model solution."""
        owned = self.partition.owned_slice
        diff = self.u[owned] - self.exact_solution()[owned]
        max_error = self._global_max(self.ops.max_norm(diff))
        self.metrics.max_error = max_error
        return max_error

    def gather_solution(self, values: np.ndarray = None):
        """Assemble the global matrix on the main process (None elsewhere)."""
        values = self.u if values is None else values
        return values[self.partition.owned_slice].copy()
