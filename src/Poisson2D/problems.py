"""Problem definitions and initial grids for the 2-D Poisson equation.

Solves -Δu = f on a rectangle with Dirichlet boundary values. Grids are
flattened row-major buffers of ``rows * n`` float64 samples; row ``r`` lies
at ``y = y0 + r*hy`` and column ``c`` at ``x = x0 + c*hx``.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

DEFAULT_DOMAIN = (0.0, 1.0, 0.0, 1.0)


class GridError(ValueError):
    """Initial grid missing or malformed."""


@dataclass(frozen=True)
class Problem:
    """Source term, boundary value and (optional) exact solution."""

    name: str
    source: Callable[[np.ndarray, np.ndarray], np.ndarray]
    boundary: float = 0.0
    exact: Optional[Callable[[np.ndarray, np.ndarray], np.ndarray]] = None


def sinusoidal_source_term(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """f = 8pi^2 sin(2pi x) sin(2pi y)."""
    return 8 * np.pi**2 * np.sin(2 * np.pi * x) * np.sin(2 * np.pi * y)


def sinusoidal_exact_solution(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """u = sin(2pi x) sin(2pi y)."""
    return np.sin(2 * np.pi * x) * np.sin(2 * np.pi * y)


def zero_source_term(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    return np.zeros(np.broadcast(x, y).shape)


PROBLEMS = {
    "sinusoidal": Problem(
        "sinusoidal", sinusoidal_source_term, 0.0, sinusoidal_exact_solution
    ),
    "zero": Problem("zero", zero_source_term, 0.0, zero_source_term),
}


def get_problem(name: str) -> Problem:
    try:
        return PROBLEMS[name]
    except KeyError:
        raise ValueError(f"Unknown problem: {name}. Use one of {sorted(PROBLEMS)}.") from None


def grid_coordinates(
    n: int,
    rows: int,
    domain: Tuple[float, float, float, float] = DEFAULT_DOMAIN,
    row_offset: int = 0,
    row_count: Optional[int] = None,
):
    """Meshgrid (X, Y) of shape (row_count, n) for rows starting at row_offset."""
    x0, x1, y0, y1 = domain
    hx = (x1 - x0) / (n - 1)
    hy = (y1 - y0) / (rows - 1)
    if row_count is None:
        row_count = rows - row_offset
    x = x0 + np.arange(n) * hx
    y = y0 + np.arange(row_offset, row_offset + row_count) * hy
    X, Y = np.meshgrid(x, y, indexing="xy")
    return X, Y


def create_initial_grid(
    n: int,
    rows: Optional[int] = None,
    boundary: float = 0.0,
) -> np.ndarray:
    """Flattened initial grid: zero interior, Dirichlet value on the frame."""
    if rows is None:
        rows = n
    u = np.zeros((rows, n), dtype=np.float64)
    u[0, :] = boundary
    u[-1, :] = boundary
    u[:, 0] = boundary
    u[:, -1] = boundary
    return u.ravel()


def validate_initial_grid(grid, n: int, rows: int) -> np.ndarray:
    """Return ``grid`` as a flat float64 array or raise GridError."""
    if grid is None:
        raise GridError("No initial grid provided")
    grid = np.asarray(grid, dtype=np.float64).ravel()
    if grid.size != rows * n:
        raise GridError(
            f"Initial grid has {grid.size} values, expected {rows}x{n} = {rows * n}"
        )
    if not np.all(np.isfinite(grid)):
        raise GridError("Initial grid contains non-finite values")
    return grid


def compute_l2_error(
    grid: np.ndarray,
    n: int,
    rows: int,
    exact: Callable[[np.ndarray, np.ndarray], np.ndarray],
    domain: Tuple[float, float, float, float] = DEFAULT_DOMAIN,
) -> float:
    """Discrete L2 error of the interior against an analytical solution."""
    X, Y = grid_coordinates(n, rows, domain)
    x0, x1, y0, y1 = domain
    hx = (x1 - x0) / (n - 1)
    hy = (y1 - y0) / (rows - 1)
    u = np.asarray(grid).reshape(rows, n)
    diff = u[1:-1, 1:-1] - exact(X, Y)[1:-1, 1:-1]
    return float(np.sqrt(hx * hy * np.sum(diff**2)))
