"""Tests for problem definitions and initial grids."""

import numpy as np
import pytest
from Poisson2D import (
    GridError,
    PROBLEMS,
    create_initial_grid,
    get_problem,
    sinusoidal_exact_solution,
    sinusoidal_source_term,
    validate_initial_grid,
)
from Poisson2D.problems import compute_l2_error, grid_coordinates


def test_sinusoidal_pair_is_consistent():
    """-Δu of the exact solution equals the source term."""
    x, y = 0.3, 0.7
    h = 1e-4
    u = sinusoidal_exact_solution
    lap = (u(x + h, y) + u(x - h, y) + u(x, y + h) + u(x, y - h) - 4 * u(x, y)) / h**2
    assert -lap == pytest.approx(sinusoidal_source_term(x, y), rel=1e-5)


def test_exact_solution_vanishes_on_boundary():
    """Exact solution is zero on the frame."""
    X, Y = grid_coordinates(9, 9)
    u = sinusoidal_exact_solution(X, Y)
    assert np.allclose(u[0], 0) and np.allclose(u[-1], 0)
    assert np.allclose(u[:, 0], 0) and np.allclose(u[:, -1], 0)


def test_registry():
    """Known problems are registered, unknown names raise."""
    assert set(PROBLEMS) >= {"sinusoidal", "zero"}
    assert get_problem("zero").exact is not None
    with pytest.raises(ValueError, match="Unknown problem"):
        get_problem("nope")


def test_grid_coordinates_block():
    """Block coordinates start at the block's global row."""
    X, Y = grid_coordinates(5, 9, row_offset=3, row_count=2)
    assert X.shape == Y.shape == (2, 5)
    np.testing.assert_allclose(Y[:, 0], [3 / 8, 4 / 8])
    np.testing.assert_allclose(X[0], np.linspace(0, 1, 5))


def test_initial_grid_layout():
    """Initial grid has the boundary value on the frame only."""
    grid = create_initial_grid(4, 3, boundary=2.0)
    u = grid.reshape(3, 4)
    assert grid.size == 12
    assert np.all(u[0] == 2.0) and np.all(u[-1] == 2.0)
    assert np.all(u[:, 0] == 2.0) and np.all(u[:, -1] == 2.0)
    assert np.all(u[1, 1:-1] == 0.0)


def test_initial_grid_square_default():
    """Initial grid is square by default."""
    assert create_initial_grid(5).size == 25


@pytest.mark.parametrize(
    "grid",
    [None, np.zeros(8), np.full(9, np.nan), np.array([0, 0, 0, 0, np.inf, 0, 0, 0, 0])],
)
def test_validate_rejects_malformed(grid):
    """Missing, wrong-sized or non-finite grids raise GridError."""
    with pytest.raises(GridError):
        validate_initial_grid(grid, 3, 3)


def test_grid_error_is_value_error():
    """GridError is a ValueError."""
    assert issubclass(GridError, ValueError)


def test_validate_accepts_2d():
    """A 2-D grid is flattened to float64."""
    grid = validate_initial_grid(np.ones((3, 4)), 4, 3)
    assert grid.shape == (12,)
    assert grid.dtype == np.float64


def test_l2_error_of_exact_solution_is_zero():
    """Exact solution has zero L2 error."""
    X, Y = grid_coordinates(11, 7)
    grid = sinusoidal_exact_solution(X, Y).ravel()
    assert compute_l2_error(grid, 11, 7, sinusoidal_exact_solution) == pytest.approx(0.0)
