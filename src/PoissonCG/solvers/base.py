"""Common solver scaffolding: parameters, model, metrics and parallel hooks."""

import time
from abc import ABC, abstractmethod

import numpy as np

from ..datastructures import GlobalMetrics, GlobalParams, LocalMetrics
from ..problems import DifferentialEquationModel, create_model
from ..mpi.reductions import checked_fraction


class BaseSolver(ABC):
    """Abstract base for the Poisson solvers.

    Parallel variants override the hook methods (halo sync, reductions,
    timing); the sequential defaults make a single process behave like a
    group of one.

    Parameters
    ----------
    N : int
        Grid size (N x N, boundary included).
    model : DifferentialEquationModel, optional
        Forcing and boundary values (default: ``params.problem``).
    **kwargs
        Remaining ``GlobalParams`` fields (tolerance, max_iter, ...), or a
        ready ``params`` object.
    """

    def __init__(self, N: int, model: DifferentialEquationModel = None, **kwargs):
        self.params = kwargs.pop("params", None) or GlobalParams(N=N, **kwargs)
        self.params.validate(n_ranks=self._n_ranks())
        self.N = self.params.N
        self.tolerance = self.params.tolerance
        self.max_iter = self.params.max_iter
        self.model = model if model is not None else create_model(self.params.problem)

        # Reduced results and per-iteration series
        self.metrics = GlobalMetrics()
        self.timeseries = LocalMetrics()

        self._time_compute = 0.0
        self._time_halo = 0.0

    @abstractmethod
    def solve(self) -> GlobalMetrics:
        """Iterate to convergence and return the metrics."""
        pass

    def warmup(self, warmup_size: int = 10):
        """Compile the kernel ahead of timing (no-op for NumPy)."""
        self.kernel.warmup(warmup_size=warmup_size)

    def _n_ranks(self) -> int:
        """Process count the parameters are validated against."""
        return 1

    def _get_time(self) -> float:
        return time.perf_counter()

    def _sync_halos(self, u: np.ndarray) -> float:
        """Refresh halo rows of ``u``; returns the time spent."""
        return 0.0

    def _global_fraction(self, numerator: float, denominator: float) -> float:
        """Step-size fraction over the whole grid."""
        return checked_fraction(numerator, denominator, self.params.degeneracy_tol)

    def _global_max(self, local_value: float) -> float:
        """Maximum over the whole grid."""
        return float(local_value)

    def _is_root(self) -> bool:
        """Whether this process reports results."""
        return True

    def _barrier(self):
        pass

    def _reset(self):
        self._time_compute = 0.0
        self._time_halo = 0.0
        self.timeseries.clear()

    def _finalize(self, wall_time: float):
        """Copy timers and the last increment into the metrics."""
        m = self.metrics
        m.wall_time = wall_time
        m.total_compute_time = self._time_compute
        m.total_halo_time = self._time_halo
        if self.timeseries.error_history:
            m.final_increment = self.timeseries.error_history[-1]
