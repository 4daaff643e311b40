"""Poisson Solvers.

Consistent naming: {Method}Solver for sequential, {Method}MPISolver for parallel.

Sequential (no MPI):
- CGSolver: Conjugate gradient on the whole grid

Parallel (MPI):
- CGMPISolver: Conjugate gradient with row-band decomposition
"""

from .cg import CGSolver, SolverState
from .cg_mpi import CGMPISolver

__all__ = [
    "CGSolver",
    "CGMPISolver",
    "SolverState",
]
