"""Tests for global reductions."""

import math

import numpy as np
import pytest
from mpi4py import MPI
from PoissonCG import DegenerateStepError
from PoissonCG.mpi import checked_fraction, global_fraction, global_max


class TestCheckedFraction:
    def test_plain_division(self):
        assert checked_fraction(3.0, 4.0, 1e-150) == 0.75

    @pytest.mark.parametrize("denominator", [0.0, -0.0, 1e-200, math.nan, math.inf])
    def test_degenerate_denominator(self, denominator):
        with pytest.raises(DegenerateStepError) as exc:
            checked_fraction(1.0, denominator, 1e-150)
        assert exc.value.numerator == 1.0

    def test_negative_denominator_allowed(self):
        assert checked_fraction(1.0, -2.0, 1e-150) == -0.5

    def test_is_arithmetic_error(self):
        with pytest.raises(ArithmeticError):
            checked_fraction(0.0, 0.0, 0.0)


class TestCollectives:
    """Reductions over fake ranks give one identical answer everywhere."""

    def test_global_max(self, run_ranks):
        results = run_ranks(4, lambda comm: global_max(comm, [0.5, 3.25, -1.0, 2.0][comm.Get_rank()]))
        assert results == [3.25] * 4

    def test_global_fraction_sums_parts_first(self, run_ranks):
        """(1 + 2 + 3) / (1 + 1 + 10), not the mean of the local ratios."""
        denominators = [1.0, 1.0, 10.0]

        def target(comm):
            rank = comm.Get_rank()
            return global_fraction(comm, rank + 1.0, denominators[rank], 1e-150)

        assert run_ranks(3, target) == [0.5] * 3

    def test_global_fraction_matches_sequential(self, run_ranks):
        rng = np.random.default_rng(7)
        nums, dens = rng.standard_normal(4), rng.uniform(1.0, 2.0, 4)

        results = run_ranks(4, lambda comm: global_fraction(comm, nums[comm.Get_rank()], dens[comm.Get_rank()]))

        expected = sum(nums) / sum(dens)
        assert all(r == pytest.approx(expected, rel=1e-14) for r in results)
        assert len(set(results)) == 1

    def test_degenerate_raised_on_every_rank(self, run_ranks):
        """A zero global denominator fails everywhere, without a hang."""
        outcomes = []

        def target(comm):
            try:
                global_fraction(comm, 1.0, 0.0, 1e-150)
            except DegenerateStepError:
                outcomes.append(comm.Get_rank())
                return "degenerate"
            return "ok"

        assert run_ranks(3, target) == ["degenerate"] * 3
        assert sorted(outcomes) == [0, 1, 2]

    def test_local_zeros_not_degenerate(self, run_ranks):
        """Only the global denominator matters."""
        results = run_ranks(2, lambda comm: global_fraction(comm, 1.0, [0.0, 4.0][comm.Get_rank()], 1e-150))
        assert results == [0.5, 0.5]


class TestRealCommunicator:
    """The same reductions through mpi4py's COMM_WORLD."""

    def test_global_max(self):
        rank = MPI.COMM_WORLD.Get_rank()
        assert global_max(MPI.COMM_WORLD, 2.5) == 2.5
        assert global_max(MPI.COMM_WORLD, float(rank)) == float(MPI.COMM_WORLD.Get_size() - 1)

    def test_global_fraction(self):
        assert global_fraction(MPI.COMM_WORLD, 3.0, 6.0, 1e-150) == 0.5
