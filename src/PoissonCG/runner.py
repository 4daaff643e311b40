"""Run the solver: in-process (``run`` / ``main``) or via mpiexec (``run_solver``).

``run`` never raises. It returns a ``RunResult`` whose status says how the
run ended. Statuses every rank reaches together (configuration errors, a
degenerate step) need nothing more than a nonzero exit; communication
failures and unexpected errors may leave peers blocked in a collective, so
``main`` aborts the whole group for those.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
from mpi4py import MPI

from utils.cli import (
    add_logging_args,
    add_mpi_args,
    add_positional_args,
    add_solver_args,
    create_parser,
)
from utils.config import get_config_section, setup_logging

from .datastructures import GlobalMetrics, GlobalParams
from .errors import (
    CommunicationError,
    ConfigurationError,
    ExitStatus,
    PoissonError,
    UsageError,
)
from .io import write_matrix
from .solvers import CGMPISolver

log = logging.getLogger(__name__)

# Failures that can leave other ranks waiting on this one
ABORT_STATUSES = {ExitStatus.COMMUNICATION_ERROR, ExitStatus.INTERNAL_ERROR}


@dataclass
class RunResult:
    """Outcome of one run on one rank.

    Matrices are only set on the main process.
    """

    status: ExitStatus
    n_ranks: int = 1
    metrics: Optional[GlobalMetrics] = None
    approximate: Optional[np.ndarray] = None
    ground: Optional[np.ndarray] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == ExitStatus.OK

    @property
    def requires_abort(self) -> bool:
        """True when peers cannot be trusted to stop on their own."""
        return self.status in ABORT_STATUSES and self.n_ranks > 1


def run(
    params: GlobalParams,
    comm: MPI.Comm = None,
    ground_path=None,
    approx_path=None,
    model=None,
    numba_threads: int = 1,
) -> RunResult:
    """Solve on every rank of ``comm``, gather and write results on rank 0."""
    comm = comm if comm is not None else MPI.COMM_WORLD
    rank, size = comm.Get_rank(), comm.Get_size()

    try:
        # Before any communication
        params.validate(n_ranks=size)

        t_start = MPI.Wtime()
        solver = CGMPISolver(
            params.N, comm=comm, model=model, params=params, numba_threads=numba_threads
        )
        if params.use_numba:
            solver.warmup()
        solver.initialize()
        metrics = solver.solve()
        global_error = solver.compute_error()

        approximate = solver.gather_solution()
        ground = solver.gather_solution(solver.exact_solution())
        elapsed = MPI.Wtime() - t_start
    except PoissonError as e:
        log.error(str(e))
        return RunResult(e.status, size, error=e)
    except MPI.Exception as e:
        err = CommunicationError(f"MPI failure: {e}")
        log.error(str(err))
        return RunResult(err.status, size, error=err)
    except Exception as e:
        log.exception(f"Unexpected failure: {e}")
        return RunResult(ExitStatus.INTERNAL_ERROR, size, error=e)

    result = RunResult(ExitStatus.OK, size, metrics=metrics)
    if rank == 0:
        result.approximate = approximate
        result.ground = ground
        log.info(f"Elapsed time: {elapsed:.3f} sec.")
        log.info(f"globalError: {global_error:.6e}")
        try:
            if ground_path is not None:
                write_matrix(ground_path, ground)
            if approx_path is not None:
                write_matrix(approx_path, approximate)
        except PoissonError as e:
            log.error(str(e))
            result.status = e.status
            result.error = e
    return result


def build_parser():
    """Argument parser of the ``poisson-cg`` entry point."""
    parser = create_parser("Conjugate-gradient Poisson solver with row decomposition")
    add_positional_args(parser)
    add_solver_args(parser)
    add_mpi_args(parser)
    add_logging_args(parser)
    return parser


def parse_args(argv=None):
    """Parse arguments; argparse failures become UsageError."""
    parser = build_parser()
    try:
        return parser.parse_args(argv)
    except SystemExit as e:
        if e.code in (0, None):
            raise
        raise UsageError("Not enough or invalid input arguments") from None


def params_from_args(args) -> GlobalParams:
    """Project configuration overlaid with the options given on the CLI."""
    options = dict(get_config_section("solver", config_path=args.config))
    for key in ("tolerance", "max_iter", "stretching", "problem", "use_numba", "communicator"):
        value = getattr(args, key)
        if value is not None:
            options[key] = value
    return GlobalParams.from_dict(args.N, options)


def main(argv=None) -> int:
    """Entry point: ``mpiexec -n P python -m PoissonCG GROUND APPROX N``."""
    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()

    try:
        args = parse_args(argv)
    except UsageError as e:
        print(f"{e}", file=sys.stderr)
        return int(e.status)

    try:
        logging_cfg = get_config_section("logging", config_path=args.config)
        params = params_from_args(args)
    except FileNotFoundError as e:
        err = ConfigurationError(str(e))
        print(f"{err}", file=sys.stderr)
        return int(err.status)

    setup_logging(
        rank,
        level="DEBUG" if args.verbose else logging_cfg.get("level", "INFO"),
        log_dir=args.log_dir or logging_cfg.get("log_dir"),
    )

    result = run(
        params,
        comm,
        ground_path=args.ground_path,
        approx_path=args.approx_path,
        numba_threads=args.numba_threads,
    )
    if result.requires_abort:
        log.critical(f"Aborting all {result.n_ranks} processes ({result.status.name})")
        comm.Abort(int(result.status))
    return int(result.status)


def run_solver(
    N: int, n_ranks: int = 1, workdir=None, timeout: float = 300, **options
) -> dict:
    """Run the solver on ``n_ranks`` MPI processes via mpiexec.

    Parameters
    ----------
    N : int
        Grid size
    n_ranks : int
        Number of MPI ranks
    workdir : str, optional
        Where to write the output matrices (uses a temp dir if not provided)
    **options
        CLI switches without the leading dashes, e.g. ``tolerance=1e-8``,
        ``communicator="ordered"``, ``numba=True``

    Returns
    -------
    dict
        ``returncode``, ``stdout``, ``stderr`` and, on success, the gathered
        ``approximate`` and ``ground`` matrices (or 'error' key on failure)
    """
    mpiexec = shutil.which("mpiexec")
    if mpiexec is None:
        return {"error": "mpiexec not found on PATH"}

    with tempfile.TemporaryDirectory() as tmp:
        out_dir = Path(workdir or tmp)
        ground_path, approx_path = out_dir / "ground.csv", out_dir / "approx.csv"

        cmd = [mpiexec, "-n", str(n_ranks), sys.executable, "-m", "PoissonCG",
               str(ground_path), str(approx_path), str(N)]
        for key, value in options.items():
            flag = "--" + key.replace("_", "-")
            if value is True:
                cmd.append(flag)
            elif value not in (None, False):
                cmd.extend([flag, str(value)])

        env = os.environ.copy()
        env.setdefault("OMPI_ALLOW_RUN_AS_ROOT", "1")
        env.setdefault("OMPI_ALLOW_RUN_AS_ROOT_CONFIRM", "1")
        # Open MPI refuses more ranks than cores unless told otherwise
        env.setdefault("OMPI_MCA_rmaps_base_oversubscribe", "1")
        env.setdefault("PRTE_MCA_rmaps_default_mapping_policy", ":oversubscribe")
        proc = subprocess.run(cmd, capture_output=True, text=True, env=env, timeout=timeout)

        result = {"returncode": proc.returncode, "stdout": proc.stdout, "stderr": proc.stderr}
        if proc.returncode != 0:
            result["error"] = proc.stderr
            return result

        result["approximate"] = np.loadtxt(approx_path, delimiter=",", ndmin=2)
        result["ground"] = np.loadtxt(ground_path, delimiter=",", ndmin=2)
        return result
