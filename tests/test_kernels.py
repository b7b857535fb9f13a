"""Tests for Jacobi iteration kernels."""

import numpy as np
import pytest
from Poisson2D import NumPyKernel, NumbaKernel, sinusoidal_source_term
from Poisson2D.kernels import _row_chunks
from Poisson2D.problems import grid_coordinates


def setup_problem(n=16, rows=None):
    rows = rows or n
    X, Y = grid_coordinates(n, rows)
    f = sinusoidal_source_term(X, Y)
    u1 = np.zeros((rows, n))
    u2 = np.zeros((rows, n))
    return u1, u2, f, 1.0 / (n - 1), 1.0 / (rows - 1)


def run_iterations(kernel, u1, u2, f, hx, hy, n_iter, n_threads=1):
    """Run n_iter Jacobi iterations, return final solution."""
    for i in range(n_iter):
        if i % 2 == 0:
            kernel.step(u1, u2, f, hx, hy, n_threads)
        else:
            kernel.step(u2, u1, f, hx, hy, n_threads)
    return u1 if n_iter % 2 == 0 else u2


def test_kernels_produce_identical_results():
    """NumPy and Numba kernels should produce the same results."""
    u1, u2, f, hx, hy = setup_problem(16, 20)

    numba_kernel = NumbaKernel(n_threads=1)
    numba_kernel.warmup()

    u_numpy = run_iterations(NumPyKernel(), u1.copy(), u2.copy(), f, hx, hy, 10)
    u_numba = run_iterations(numba_kernel, u1.copy(), u2.copy(), f, hx, hy, 10)

    assert np.allclose(u_numpy, u_numba, atol=1e-12)


@pytest.mark.parametrize("n_threads", [2, 3, 4, 8])
def test_threaded_numpy_matches_single_thread(n_threads):
    """Row-chunked threads give the single-thread result."""
    u1, u2, f, hx, hy = setup_problem(17, 23)
    kernel = NumPyKernel()
    try:
        u_single = run_iterations(kernel, u1.copy(), u2.copy(), f, hx, hy, 7)
        u_threaded = run_iterations(kernel, u1.copy(), u2.copy(), f, hx, hy, 7, n_threads)
    finally:
        kernel.close()

    np.testing.assert_array_equal(u_single, u_threaded)


def test_numba_thread_count_clamped():
    """Numba threads are clamped to NUMBA_NUM_THREADS."""
    kernel = NumbaKernel(n_threads=10_000)
    assert 1 <= kernel.observed_numba_threads <= 10_000


def test_boundary_preservation():
    """Kernels should not modify the first/last rows and columns."""
    u1, u2, f, hx, hy = setup_problem(12)
    u1[0, :], u1[-1, :], u1[:, 0], u1[:, -1] = 1.0, 2.0, 3.0, 4.0
    u2[:] = u1
    frame = [u1[0, :].copy(), u1[-1, :].copy(), u1[:, 0].copy(), u1[:, -1].copy()]

    u = run_iterations(NumPyKernel(), u1, u2, f, hx, hy, 10)

    assert np.array_equal(u[0, :], frame[0])
    assert np.array_equal(u[-1, :], frame[1])
    assert np.array_equal(u[:, 0], frame[2])
    assert np.array_equal(u[:, -1], frame[3])


def test_laplace_fixed_point():
    """A linear function solves the Laplace equation exactly."""
    X, Y = grid_coordinates(9, 9)
    u = (2 * X + 3 * Y).copy()
    uold = u.copy()
    NumPyKernel().step(uold, u, np.zeros_like(u), 1 / 8, 1 / 8)
    assert np.allclose(u, uold, atol=1e-14)


def test_too_few_rows_is_noop():
    """A block without interior rows is left unchanged."""
    u = np.ones((2, 5))
    NumPyKernel().step(u.copy(), u, np.zeros_like(u), 0.25, 1.0)
    assert np.all(u == 1.0)


def test_row_chunks_cover_range():
    """Row chunks cover the range without gaps or empties."""
    chunks = _row_chunks(1, 10, 4)
    assert chunks[0][0] == 1
    assert chunks[-1][1] == 10
    assert all(a[1] == b[0] for a, b in zip(chunks, chunks[1:]))
    # More threads than rows: no empty chunks
    assert _row_chunks(1, 3, 8) == [(1, 2), (2, 3)]
