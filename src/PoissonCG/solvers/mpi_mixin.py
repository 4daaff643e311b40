"""Parallel overrides of the BaseSolver hooks."""

from mpi4py import MPI

from ..mpi.reductions import global_fraction, global_max


class MPISolverMixin:
    """Swaps the sequential hooks of a solver for communicator-backed ones.

    - communicator, rank and process count
    - ``MPI.Wtime`` timing
    - step fractions and maxima reduced over all ranks
    - rank 0 as the reporting process

    Usage:
        class CGMPISolver(MPISolverMixin, CGSolver):
            def __init__(self, N, comm=None, **kwargs):
                self._init_mpi(comm)
                super().__init__(N, **kwargs)
    """

    def _init_mpi(self, comm=None):
        """Bind the communicator; must run before ``BaseSolver.__init__``."""
        self.comm = comm if comm is not None else MPI.COMM_WORLD
        self.rank, self.size = self.comm.Get_rank(), self.comm.Get_size()

    def _n_ranks(self) -> int:
        return self.size

    def _get_time(self) -> float:
        return MPI.Wtime()

    def _global_fraction(self, numerator: float, denominator: float) -> float:
        """Sum both parts across ranks, then divide."""
        return global_fraction(
            self.comm, numerator, denominator, self.params.degeneracy_tol
        )

    def _global_max(self, local_value: float) -> float:
        return global_max(self.comm, local_value)

    def _is_root(self) -> bool:
        return self.rank == 0

    def _barrier(self):
        """Line all ranks up before the timed loop."""
        self.comm.Barrier()
