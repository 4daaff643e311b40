"""Row-band domain decomposition.

Pure index arithmetic with no MPI dependencies: every rank derives its own
band (and its neighbours' bands) from its rank and the process count alone,
so the partition needs no communication.
"""

from .datastructures import RowPartition
from .errors import ConfigurationError


def compute_partition(total_rows: int, rank: int, process_count: int) -> tuple[int, int]:
    """Split ``total_rows`` into contiguous bands and return this rank's band.

    Ranks below ``total_rows % process_count`` receive one extra row.

    Returns
    -------
    tuple of int
        ``(local_row_count, start_row_index)``
    """
    if process_count < 1:
        raise ConfigurationError(f"Incorrect number of processes: {process_count}")
    if not 0 <= rank < process_count:
        raise ConfigurationError(f"Rank {rank} outside [0, {process_count})")

    base, remainder = divmod(total_rows, process_count)
    local_rows = base + (1 if rank < remainder else 0)
    start_row = rank * base + min(rank, remainder)
    return local_rows, start_row


def create_partition(N: int, rank: int, size: int, n_cols: int = None) -> RowPartition:
    """Build the partition descriptor of ``rank`` for an ``N x n_cols`` grid."""
    local_rows, start_row = compute_partition(N, rank, size)
    if local_rows == 0:
        raise ConfigurationError(
            f"Rank {rank} would own no rows (N={N}, processes={size})"
        )
    return RowPartition(
        rank=rank,
        size=size,
        n_rows=N,
        n_cols=N if n_cols is None else n_cols,
        local_rows=local_rows,
        start_row=start_row,
    )


class RowDecomposition:
    """Partition descriptors of every rank for one grid.

    Parameters
    ----------
    N : int
        Global grid size (N x N including boundaries)
    size : int
        Number of ranks

    Examples
    --------
    >>> decomp = RowDecomposition(N=10, size=3)
    >>> [decomp.get_rank_info(r).local_rows for r in range(3)]
    [4, 3, 3]
    """

    def __init__(self, N: int, size: int):
        self.N = N
        self.size = size
        self._rank_info = [create_partition(N, rank, size) for rank in range(size)]

    def get_rank_info(self, rank: int) -> RowPartition:
        """Get the partition of a specific rank."""
        return self._rank_info[rank]

    def get_all_rank_info(self) -> list[RowPartition]:
        """Get the partitions of all ranks, in rank order."""
        return self._rank_info
