"""Command-line interface utilities.

Provides:
- Argument parser creation for the solver entry point
- Common CLI patterns for numerical solvers
"""

from .args import create_parser, add_positional_args, add_solver_args, add_mpi_args, add_logging_args

__all__ = [
    "create_parser",
    "add_positional_args",
    "add_solver_args",
    "add_mpi_args",
    "add_logging_args",
]
