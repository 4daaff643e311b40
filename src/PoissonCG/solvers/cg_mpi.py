"""MPI-parallel conjugate-gradient solver (extends CGSolver)."""

import numpy as np
from mpi4py import MPI

from .cg import CGSolver
from .mpi_mixin import MPISolverMixin
from ..mpi.grid import DistributedGrid


class CGMPISolver(MPISolverMixin, CGSolver):
    """Parallel CG solver with row-band domain decomposition.

    Every rank owns one band of rows plus a halo row toward each neighbour.
    Each iteration performs, in the same order on every rank: one halo
    exchange of the search direction, two step-size reductions and one
    max reduction for the convergence test.

    Parameters
    ----------
    N : int
        Grid size (N x N, boundary included).
    comm : MPI.Comm, optional
        Communicator (default: MPI.COMM_WORLD).
    **kwargs
        Passed to CGSolver; ``communicator`` selects the halo exchanger.
    """

    def __init__(self, N: int, comm: MPI.Comm = None, **kwargs):
        # MPI setup before parent init
        self._init_mpi(comm)

        # Parent init (validates params, calls _init_partition)
        super().__init__(N, **kwargs)

        # Store config info
        self.local_shape = self.partition.halo_shape
        self.halo_size_mb = self.grid.get_halo_size_bytes() / (1024 * 1024)

    def _init_partition(self):
        """Create distributed grid and take this rank's band from it."""
        self.grid = DistributedGrid(
            self.N, self.comm, halo_exchange=self.params.communicator
        )
        self.partition = self.grid.partition

    def _sync_halos(self, u: np.ndarray) -> float:
        """Sync halo rows with neighbors."""
        t0 = MPI.Wtime()
        self.grid.renew_bound_rows(u)
        self.grid.renew_bound_cols(u)
        return MPI.Wtime() - t0

    def gather_solution(self, values: np.ndarray = None):
        """Assemble owned bands on rank 0 (None on the other ranks)."""
        values = self.u if values is None else values
        return self.grid.gather(values)
