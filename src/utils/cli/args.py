"""Argument parsing utilities for the solver entry point.

Provides argument parser creation with the positional run arguments and
the optional solver, MPI and logging switches. Optional switches default
to None so that unset ones fall back to the project configuration.
"""

from argparse import ArgumentParser


def create_parser(description: str = "Numerical solver experiment") -> ArgumentParser:
    """Create a base argument parser.

    Parameters
    ----------
    description : str
        Parser description.

    Returns
    -------
    ArgumentParser
        Configured argument parser.

    Examples
    --------
    >>> parser = create_parser("Poisson CG solver")
    >>> parser = add_positional_args(parser)
    >>> args = parser.parse_args(["ground.csv", "approx.csv", "20"])
    """
    return ArgumentParser(description=description)


def add_positional_args(parser: ArgumentParser) -> ArgumentParser:
    """Add the three required positionals: two output paths and N.

    Parameters
    ----------
    parser : ArgumentParser
        Parser to add arguments to.

    Returns
    -------
    ArgumentParser
        The modified parser.
    """
    parser.add_argument(
        "ground_path",
        help="Output file for the exact solution on the grid",
    )
    parser.add_argument(
        "approx_path",
        help="Output file for the approximate solution",
    )
    parser.add_argument(
        "N",
        type=int,
        help="Grid resolution (points per axis, boundary included; range checked later)",
    )
    return parser


def add_solver_args(parser: ArgumentParser) -> ArgumentParser:
    """Add common numerical solver arguments.

    Parameters
    ----------
    parser : ArgumentParser
        Parser to add arguments to.

    Returns
    -------
    ArgumentParser
        The modified parser.
    """
    parser.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Convergence tolerance on the max-norm increment (default: 1e-4)",
    )

    parser.add_argument(
        "--max-iter",
        type=int,
        default=None,
        help="Maximum iterations (default: until converged)",
    )

    parser.add_argument(
        "--stretching",
        type=float,
        default=None,
        help="Grid stretching exponent, 1.0 for uniform (default: 1.0)",
    )

    parser.add_argument(
        "--problem",
        default=None,
        help="Differential equation model (default: sine)",
    )

    parser.add_argument(
        "--numba",
        dest="use_numba",
        action="store_true",
        default=None,
        help="Use the Numba JIT kernel",
    )

    parser.add_argument(
        "--numba-threads",
        type=int,
        default=1,
        help="Number of Numba threads (default: 1)",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Project configuration YAML (default: <repo>/project_config.yaml)",
    )

    return parser


def add_mpi_args(parser: ArgumentParser) -> ArgumentParser:
    """Add MPI-related arguments.

    Parameters
    ----------
    parser : ArgumentParser
        Parser to add arguments to.

    Returns
    -------
    ArgumentParser
        The modified parser.
    """
    parser.add_argument(
        "--communicator",
        choices=["sendrecv", "ordered"],
        default=None,
        help="Halo exchange method (default: sendrecv)",
    )

    return parser


def add_logging_args(parser: ArgumentParser) -> ArgumentParser:
    """Add logging arguments.

    Parameters
    ----------
    parser : ArgumentParser
        Parser to add arguments to.

    Returns
    -------
    ArgumentParser
        The modified parser.
    """
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Directory for per-rank debug traces (default: none)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )

    return parser
