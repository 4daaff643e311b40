"""Data structures for solver configuration and results.

Architecture: 2x2 matrix of Params vs Metrics x Global vs Local

                 Params (input/config)         Metrics (output/results)
                 ---------------------         ------------------------
Global           GlobalParams                  GlobalMetrics
(same across     N, bounds, tolerance,         converged, iterations,
ranks / agg)     communicator...               max_error, wall_time...

Local            RowPartition                  LocalMetrics
(per-rank)       rank, owned rows,             compute_times[],
                 halo rows, neighbors...       halo_times[]...
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

from .errors import ConfigurationError
from .problems import MODELS


COMMUNICATORS = ("sendrecv", "ordered")


# ============================================================================
# Global (identical across ranks, or aggregated on rank 0)
# ============================================================================


@dataclass
class GlobalParams:
    """Run configuration. Identical across all MPI ranks.

    ``N`` is the number of grid points per axis, boundary points included.
    """

    # Required
    N: int

    # Domain
    x_min: float = 0.0
    x_max: float = 2.0
    y_min: float = 0.0
    y_max: float = 2.0

    # Grid generation: 1.0 is uniform spacing
    stretching: float = 1.0

    # Differential equation model (see problems.MODELS)
    problem: str = "sine"

    # Solver
    tolerance: float = 1e-4
    max_iter: Optional[int] = None  # None: iterate until converged
    degeneracy_tol: float = 1e-150

    # Parallelization
    communicator: str = "sendrecv"  # "sendrecv" | "ordered"
    enforce_rank_bound: bool = True

    # Numba
    use_numba: bool = False

    @classmethod
    def from_dict(cls, N: int, options: dict) -> "GlobalParams":
        """Build params from a config mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)} - {"N"}
        return cls(N=N, **{k: v for k, v in options.items() if k in known})

    @staticmethod
    def max_ranks(N: int) -> int:
        """Default process-count limit; every band then owns at least one row."""
        return (N + 1) // 2

    def validate(self, n_ranks: int = 1) -> None:
        """Check parameters before any communication takes place."""
        if not isinstance(self.N, int) or self.N < 3:
            raise ConfigurationError(
                f"Grid resolution must be an integer >= 3, got {self.N!r}"
            )
        if not (self.x_min < self.x_max and self.y_min < self.y_max):
            raise ConfigurationError(
                f"Empty domain [{self.x_min}, {self.x_max}] x "
                f"[{self.y_min}, {self.y_max}]"
            )
        if self.stretching <= 0:
            raise ConfigurationError(
                f"Stretching exponent must be positive, got {self.stretching}"
            )
        if self.tolerance <= 0:
            raise ConfigurationError(
                f"Tolerance must be positive, got {self.tolerance}"
            )
        if self.max_iter is not None and self.max_iter < 1:
            raise ConfigurationError(
                f"max_iter must be positive or None, got {self.max_iter}"
            )
        if self.problem not in MODELS:
            raise ConfigurationError(
                f"Unknown problem: {self.problem}. Use one of {', '.join(MODELS)}."
            )
        if self.communicator not in COMMUNICATORS:
            raise ConfigurationError(
                f"Unknown communicator: {self.communicator}. "
                f"Use one of {', '.join(COMMUNICATORS)}."
            )
        if n_ranks < 1:
            raise ConfigurationError(f"Incorrect number of processes: {n_ranks}")
        # Every band owns at least one row, bound or not
        if n_ranks > self.N:
            raise ConfigurationError(
                f"Too many processes for N={self.N}: {n_ranks} > {self.N} rows"
            )
        if self.enforce_rank_bound and n_ranks > self.max_ranks(self.N):
            raise ConfigurationError(
                f"Too many processes for N={self.N}: {n_ranks} > "
                f"{self.max_ranks(self.N)}"
            )


@dataclass
class GlobalMetrics:
    """Aggregated results. Meaningful on every rank (reduced values)."""

    converged: bool = False
    iterations: int = 0
    final_increment: Optional[float] = None  # max |u_k+1 - u_k| at exit
    max_error: Optional[float] = None  # max |u - u_exact| over all points
    wall_time: Optional[float] = None

    # Timing breakdown (sum across all iterations, this rank)
    total_compute_time: Optional[float] = None
    total_halo_time: Optional[float] = None


# ============================================================================
# Local (per-rank)
# ============================================================================


@dataclass
class LocalMetrics:
    """Per-rank timeseries, accumulated during solve."""

    compute_times: List[float] = field(default_factory=list)
    halo_times: List[float] = field(default_factory=list)

    # Global increment per iteration (same on every rank)
    error_history: List[float] = field(default_factory=list)

    def clear(self):
        """Clear all timeseries data."""
        self.compute_times.clear()
        self.halo_times.clear()
        self.error_history.clear()


@dataclass(frozen=True)
class RowPartition:
    """Per-rank description of the owned row band.

    Rows run along the x axis. Each rank owns ``local_rows`` consecutive
    global rows starting at ``start_row`` and keeps one halo row on each
    side that has a neighbouring rank.
    """

    rank: int
    size: int
    n_rows: int
    n_cols: int
    local_rows: int
    start_row: int

    @property
    def first_row(self) -> int:
        return self.start_row

    @property
    def last_row(self) -> int:
        return self.start_row + self.local_rows - 1

    @property
    def is_first(self) -> bool:
        return self.rank == 0

    @property
    def is_last(self) -> bool:
        return self.rank == self.size - 1

    @property
    def is_main(self) -> bool:
        return self.rank == 0

    @property
    def first_row_with_halo(self) -> int:
        return self.first_row if self.is_first else self.first_row - 1

    @property
    def last_row_with_halo(self) -> int:
        return self.last_row if self.is_last else self.last_row + 1

    @property
    def rows_with_halo(self) -> int:
        return self.last_row_with_halo - self.first_row_with_halo + 1

    @property
    def first_col(self) -> int:
        return 0

    @property
    def last_col(self) -> int:
        return self.n_cols - 1

    @property
    def halo_shape(self) -> tuple:
        """Shape of a local field, halo rows included."""
        return (self.rows_with_halo, self.n_cols)

    @property
    def owned_slice(self) -> slice:
        """Local row slice of the owned band (halo rows excluded)."""
        offset = self.first_row - self.first_row_with_halo
        return slice(offset, offset + self.local_rows)

    @property
    def neighbors(self) -> Dict[str, Optional[int]]:
        """Neighbour ranks; rows are split along x only."""
        return {
            "x_lower": None if self.is_first else self.rank - 1,
            "x_upper": None if self.is_last else self.rank + 1,
            "y_lower": None,
            "y_upper": None,
        }
