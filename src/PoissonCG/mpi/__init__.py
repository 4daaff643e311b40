"""MPI communication for row-decomposed grids.

This package provides:
- DistributedGrid: Unified interface for parallel grids
- HaloExchanger: Strategies for halo exchange (sendrecv/ordered)
- Global reductions: max and numerator/denominator fraction
"""

from .grid import DistributedGrid
from .halo import (
    HaloExchanger,
    HaloStep,
    MessageTag,
    OrderedHaloExchanger,
    SendrecvHaloExchanger,
    create_halo_exchanger,
    exchange_schedule,
)
from .reductions import checked_fraction, global_fraction, global_max

__all__ = [
    "DistributedGrid",
    "HaloExchanger",
    "HaloStep",
    "MessageTag",
    "OrderedHaloExchanger",
    "SendrecvHaloExchanger",
    "create_halo_exchanger",
    "exchange_schedule",
    "checked_fraction",
    "global_fraction",
    "global_max",
]
