"""Tests for stencil kernels and the discrete operators built on them."""

import numpy as np
import pytest
from PoissonCG import (
    ApproximateOperations,
    DifferentialEquationModel,
    GlobalParams,
    GridModel,
    NumbaKernel,
    NumPyKernel,
    create_kernel,
    create_partition,
)


def full_grid(N, stretching=1.0):
    params = GlobalParams(N=N, stretching=stretching)
    return GridModel.from_partition(params, create_partition(N, 0, 1))


def reference_laplacian(f, grid):
    """Cell-by-cell stencil; the y steps are looked up by row index."""
    hx, hy = grid.x_steps, grid.y_steps
    ax, ay = grid.x_average_steps, grid.y_average_steps
    out = np.zeros_like(f)
    for i in range(1, f.shape[0] - 1):
        for j in range(1, f.shape[1] - 1):
            x_part = (f[i, j] - f[i - 1, j]) / hx[i - 1] - (f[i + 1, j] - f[i, j]) / hx[i]
            y_part = (f[i, j] - f[i, j - 1]) / hy[i - 1] - (f[i, j + 1] - f[i, j]) / hy[i]
            out[i, j] = x_part / ax[i - 1] + y_part / ay[j - 1]
    return out


class TestLaplacian:
    """Tests for the negated 5-point Laplacian."""

    def test_quadratic_exact_on_uniform_grid(self):
        """-laplace(x^2 + y^2) = -4 with no truncation error."""
        grid = full_grid(9)
        X, Y = grid.meshgrid()

        out = ApproximateOperations(grid).laplacian(X**2 + Y**2)

        np.testing.assert_allclose(out[1:-1, 1:-1], -4.0, rtol=1e-10)

    def test_boundary_rows_and_columns_stay_zero(self):
        grid = full_grid(8)
        X, Y = grid.meshgrid()

        out = ApproximateOperations(grid).laplacian(np.exp(X * Y))

        assert np.all(out[0, :] == 0.0) and np.all(out[-1, :] == 0.0)
        assert np.all(out[:, 0] == 0.0) and np.all(out[:, -1] == 0.0)

    def test_writes_into_given_buffer(self):
        grid = full_grid(6)
        X, Y = grid.meshgrid()
        out = np.zeros_like(X)

        result = ApproximateOperations(grid).laplacian(X * Y, out=out)

        assert result is out

    def test_second_order_truncation(self):
        """Truncation error against the analytic forcing shrinks as O(h^2)."""
        model = DifferentialEquationModel()
        truncation = []
        for N in [21, 41]:
            grid = full_grid(N)
            X, Y = grid.meshgrid()
            out = ApproximateOperations(grid).laplacian(model.solution(X, Y))
            truncation.append(np.abs(out - model.forcing(X, Y)))

        # Compare on the points both grids share
        coarse = np.max(truncation[0][1:-1, 1:-1])
        fine = np.max(truncation[1][2:-2:2, 2:-2:2])
        assert 3.5 < coarse / fine < 4.5

    def test_non_uniform_steps_follow_row_index(self):
        """The y term takes hy[i - 1] and hy[i] for row i."""
        grid = GridModel(np.array([0.0, 1.0, 3.0, 3.5]), np.array([0.0, 0.5, 1.5, 3.0, 3.25]))
        f = np.arange(20, dtype=np.float64).reshape(4, 5) ** 2

        out = ApproximateOperations(grid).laplacian(f)

        np.testing.assert_allclose(out, reference_laplacian(f, grid), rtol=1e-14)

    def test_band_with_no_interior(self):
        """Two local rows: nothing to compute, nothing written."""
        grid = GridModel(np.array([0.0, 1.0]), np.linspace(0.0, 2.0, 5))
        out = ApproximateOperations(grid).laplacian(np.ones((2, 5)))

        assert np.all(out == 0.0)


class TestInnerProduct:
    """Tests for the weighted inner product and norms."""

    def test_ones_give_interior_area(self):
        """(1, 1) sums the average-step cell areas of the interior."""
        grid = full_grid(11)
        ones = np.ones(grid.shape)

        result = ApproximateOperations(grid).inner_product(ones, ones)

        assert result == pytest.approx(9 * 9 * 0.2 * 0.2)

    def test_ignores_outermost_cells(self):
        grid = full_grid(6)
        a = np.zeros(grid.shape)
        a[0, :] = a[-1, :] = a[:, 0] = a[:, -1] = 1e6

        assert ApproximateOperations(grid).inner_product(a, a) == 0.0

    def test_weighted_by_average_steps(self):
        grid = GridModel(np.array([0.0, 0.1, 0.3, 0.6]), np.array([0.0, 1.0, 3.0]))
        a = np.zeros(grid.shape)
        a[1, 1], a[2, 1] = 2.0, 3.0

        result = ApproximateOperations(grid).inner_product(a, a)

        assert result == pytest.approx(0.15 * 1.5 * 4.0 + 0.25 * 1.5 * 9.0)

    def test_energy_norm(self):
        grid = full_grid(11)
        ones = np.ones(grid.shape)

        assert ApproximateOperations(grid).energy_norm(ones) == pytest.approx(9 * 0.2)

    def test_max_norm_includes_halo(self):
        a = np.zeros((4, 4))
        a[0, 2] = -7.5

        assert ApproximateOperations.max_norm(a) == 7.5

    def test_max_norm_of_empty_array(self):
        assert ApproximateOperations.max_norm(np.zeros((0, 5))) == 0.0


class TestNumbaKernel:
    """Numba kernel must match the NumPy kernel."""

    @pytest.fixture(scope="class")
    def numba_kernel(self):
        kernel = NumbaKernel(specified_numba_threads=1)
        kernel.warmup()
        return kernel

    @pytest.mark.parametrize("stretching", [1.0, 1.8])
    def test_laplacian_identical(self, numba_kernel, stretching):
        grid = full_grid(17, stretching)
        X, Y = grid.meshgrid()
        f = np.sin(3 * X) * np.cos(Y) + X * Y

        numpy_out = ApproximateOperations(grid, NumPyKernel()).laplacian(f)
        numba_out = ApproximateOperations(grid, numba_kernel).laplacian(f)

        np.testing.assert_allclose(numba_out, numpy_out, rtol=1e-12, atol=1e-12)

    def test_inner_product_identical(self, numba_kernel):
        grid = full_grid(17, 1.3)
        rng = np.random.default_rng(0)
        a, b = rng.standard_normal(grid.shape), rng.standard_normal(grid.shape)

        numpy_ip = ApproximateOperations(grid, NumPyKernel()).inner_product(a, b)
        numba_ip = ApproximateOperations(grid, numba_kernel).inner_product(a, b)

        assert numba_ip == pytest.approx(numpy_ip, rel=1e-12)

    def test_reports_threads(self, numba_kernel):
        assert numba_kernel.observed_numba_threads >= 1


def test_kernel_factory():
    assert isinstance(create_kernel(use_numba=False), NumPyKernel)
    assert isinstance(create_kernel(use_numba=True, numba_threads=1), NumbaKernel)
