"""Global reductions across the process group.

Both reductions are collective: every rank must call them in the same
order, and every rank gets the same result back.
"""

import numpy as np
from mpi4py import MPI

from ..errors import DegenerateStepError


def checked_fraction(numerator: float, denominator: float, degeneracy_tol: float) -> float:
    """``numerator / denominator``, refusing a vanishing or non-finite denominator."""
    if not np.isfinite(denominator) or abs(denominator) <= degeneracy_tol:
        raise DegenerateStepError(float(numerator), float(denominator))
    return float(numerator / denominator)


def global_max(comm: MPI.Comm, local_value: float) -> float:
    """Maximum of ``local_value`` over all ranks."""
    return float(comm.allreduce(float(local_value), op=MPI.MAX))


def global_fraction(
    comm: MPI.Comm, numerator: float, denominator: float, degeneracy_tol: float = 0.0
) -> float:
    """Sum numerators and denominators over all ranks, then divide.

    Both partial sums travel in one ``Allreduce``, so a step size costs a
    single collective.
    """
    local = np.array([numerator, denominator], dtype=np.float64)
    total = np.zeros(2)
    comm.Allreduce(local, total, op=MPI.SUM)
    return checked_fraction(total[0], total[1], degeneracy_tol)
