"""MPI Poisson Solver package (conjugate gradient).

Solves -laplace(u) = F on a rectangle with Dirichlet boundary values, using
a 5-point finite-difference scheme on a structured (optionally stretched)
grid. Rows of the grid are split into contiguous bands, one per MPI rank,
each with a one-row halo toward its neighbours.

Solvers
-------
Sequential (no MPI):
- CGSolver: Conjugate gradient on the whole grid

Parallel (MPI):
- CGMPISolver: Conjugate gradient with row-band decomposition
"""

from .datastructures import (
    GlobalParams,
    GlobalMetrics,
    LocalMetrics,
    RowPartition,
)
from .decomposition import RowDecomposition, compute_partition, create_partition
from .errors import (
    ExitStatus,
    PoissonError,
    UsageError,
    ConfigurationError,
    OutputError,
    DegenerateStepError,
    CommunicationError,
)
from .geometry import GridModel, axis_coordinates
from .kernels import NumPyKernel, NumbaKernel, create_kernel
from .operators import ApproximateOperations
from .problems import DifferentialEquationModel, QuadraticModel, create_model
from .io import format_matrix, write_matrix
from .mpi import DistributedGrid
from .solvers import CGSolver, CGMPISolver, SolverState
from .runner import RunResult, run, run_solver

__all__ = [
    # Data structures
    "GlobalParams",
    "GlobalMetrics",
    "LocalMetrics",
    "RowPartition",
    # Decomposition
    "RowDecomposition",
    "compute_partition",
    "create_partition",
    # Errors
    "ExitStatus",
    "PoissonError",
    "UsageError",
    "ConfigurationError",
    "OutputError",
    "DegenerateStepError",
    "CommunicationError",
    # Grid and operators
    "GridModel",
    "axis_coordinates",
    "NumPyKernel",
    "NumbaKernel",
    "create_kernel",
    "ApproximateOperations",
    # Problem setup
    "DifferentialEquationModel",
    "QuadraticModel",
    "create_model",
    # Output
    "format_matrix",
    "write_matrix",
    # Grid
    "DistributedGrid",
    # Solvers
    "CGSolver",
    "CGMPISolver",
    "SolverState",
    # Running
    "RunResult",
    "run",
    "run_solver",
]

