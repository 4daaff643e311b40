"""Shared fixtures: an in-process communicator backed by threads.

``ThreadComm`` implements the subset of ``mpi4py.MPI.Comm`` the solver
uses (Sendrecv, Send/Recv, allreduce/Allreduce, gather, Barrier), so
multi-rank behaviour can be tested without an MPI launcher. Reductions
combine contributions in rank order, which keeps results identical on
every rank.
"""

import logging
import queue
import threading
from functools import reduce

import numpy as np
import pytest
from mpi4py import MPI


class DeadlockError(RuntimeError):
    """A rank waited longer than the world timeout."""


class ThreadWorld:
    """State shared by all ranks of one fake communicator."""

    def __init__(self, size: int, timeout: float = 30.0):
        self.size = size
        self.timeout = timeout
        self.barrier = threading.Barrier(size, timeout=timeout)
        self.slots = [None] * size
        self.calls = [[] for _ in range(size)]  # collective names, per rank
        self._mailboxes = {}
        self._lock = threading.Lock()

    def mailbox(self, source: int, dest: int, tag: int) -> queue.Queue:
        key = (source, dest, tag)
        with self._lock:
            if key not in self._mailboxes:
                self._mailboxes[key] = queue.Queue()
            return self._mailboxes[key]


class ThreadComm:
    """One rank's view of a ``ThreadWorld``."""

    def __init__(self, world: ThreadWorld, rank: int):
        self.world = world
        self.rank = rank

    def Get_rank(self):
        return self.rank

    def Get_size(self):
        return self.world.size

    # Point-to-point

    def Send(self, buf, dest, tag=0):
        self.world.mailbox(self.rank, dest, tag).put(np.array(buf, copy=True))

    def Recv(self, buf, source, tag=0):
        try:
            data = self.world.mailbox(source, self.rank, tag).get(timeout=self.world.timeout)
        except queue.Empty:
            raise DeadlockError(
                f"rank {self.rank} timed out receiving from {source} (tag {tag})"
            ) from None
        if data.shape != buf.shape:
            raise ValueError(f"message shape {data.shape} != buffer shape {buf.shape}")
        buf[...] = data

    def Sendrecv(self, sendbuf, dest, sendtag, recvbuf, source, recvtag):
        if dest != MPI.PROC_NULL:
            self.Send(sendbuf, dest, sendtag)
        if source != MPI.PROC_NULL:
            self.Recv(recvbuf, source, recvtag)

    # Collectives

    def _collect(self, name, value):
        self.world.calls[self.rank].append(name)
        self.world.slots[self.rank] = value
        self.world.barrier.wait()
        values = list(self.world.slots)
        self.world.barrier.wait()
        return values

    def allreduce(self, value, op=MPI.SUM):
        values = self._collect("allreduce", value)
        if op == MPI.MAX:
            return max(values)
        return reduce(lambda a, b: a + b, values)

    def Allreduce(self, sendbuf, recvbuf, op=MPI.SUM):
        values = self._collect("Allreduce", np.array(sendbuf, copy=True))
        if op == MPI.MAX:
            recvbuf[...] = reduce(np.maximum, values)
        else:
            recvbuf[...] = reduce(np.add, values)

    def gather(self, value, root=0):
        values = self._collect("gather", value)
        return values if self.rank == root else None

    def Barrier(self):
        self._collect("Barrier", None)

    def Abort(self, errorcode=1):
        raise RuntimeError(f"Abort({errorcode}) called on rank {self.rank}")


def _run_ranks(size, target, timeout=60.0):
    """Call ``target(comm)`` on ``size`` threaded ranks; return results in rank order.

    The first exception raised by any rank is re-raised here; the other
    ranks are released from collectives so they do not hang.
    """
    world = ThreadWorld(size)
    results = [None] * size
    errors = [None] * size

    def worker(rank):
        try:
            results[rank] = target(ThreadComm(world, rank))
        except BaseException as e:
            errors[rank] = e
            world.barrier.abort()

    threads = [threading.Thread(target=worker, args=(r,), daemon=True) for r in range(size)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout)
    if any(t.is_alive() for t in threads):
        world.barrier.abort()
        raise DeadlockError(f"ranks still running after {timeout}s")

    real = [e for e in errors if e is not None and not isinstance(e, threading.BrokenBarrierError)]
    if real:
        raise real[0]
    if any(e is not None for e in errors):
        raise next(e for e in errors if e is not None)
    return results


@pytest.fixture
def run_ranks():
    """Run a function on several fake MPI ranks (threads)."""
    return _run_ranks


@pytest.fixture
def single_comm():
    """A one-rank fake communicator."""
    return ThreadComm(ThreadWorld(1), 0)


@pytest.fixture
def restore_logging():
    """Undo root logger changes made by ``setup_logging``."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
