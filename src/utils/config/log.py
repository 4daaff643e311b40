"""Per-rank logging setup."""

import logging
from pathlib import Path
from typing import Optional, Union


def setup_logging(
    rank: int = 0,
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Configure the root logger for one MPI rank.

    The main rank logs to stderr at ``level``; other ranks only report
    warnings there. With ``log_dir`` every rank also writes a DEBUG trace to
    ``<log_dir>/out_rank<rank>.txt``.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    stream = logging.StreamHandler()
    stream.setLevel(level if rank == 0 else max(level, logging.WARNING))
    stream.setFormatter(logging.Formatter(f"[%(levelname)s] rank {rank}: %(message)s"))
    root.addHandler(stream)
    root.setLevel(level)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        trace = logging.FileHandler(log_dir / f"out_rank{rank}.txt", mode="w")
        trace.setLevel(logging.DEBUG)
        trace.setFormatter(logging.Formatter("%(asctime)s %(name)s [%(levelname)s] %(message)s"))
        root.addHandler(trace)
        root.setLevel(logging.DEBUG)

    return root
