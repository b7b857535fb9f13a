"""Jacobi relaxation kernels for the 5-point Poisson stencil.

Simple kernel implementations - convergence tracking is handled by the mesh
and the solver. Both kernels update rows ``1..rows-2`` and columns
``1..n-2`` of ``u`` from ``uold``; the first and last rows (global boundary
or halo) and the first and last columns are never written.
"""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import numba
from numba import njit, prange


def _jacobi_rows(uold, u, f, hx2, hy2, start, stop):
    """Update rows [start, stop) of u in place."""
    u[start:stop, 1:-1] = (
        hy2 * (uold[start:stop, :-2] + uold[start:stop, 2:])
        + hx2 * (uold[start - 1:stop - 1, 1:-1] + uold[start + 1:stop + 1, 1:-1])
        + hx2 * hy2 * f[start:stop, 1:-1]
    ) / (2.0 * (hx2 + hy2))


def _row_chunks(start: int, stop: int, n_chunks: int):
    """Split [start, stop) into at most n_chunks contiguous non-empty ranges."""
    bounds = np.linspace(start, stop, n_chunks + 1).astype(int)
    return [(lo, hi) for lo, hi in zip(bounds[:-1], bounds[1:]) if hi > lo]


@njit(parallel=True)
def _jacobi_step_numba(uold, u, f, hx2, hy2):
    """Numba JIT implementation of one Jacobi sweep."""
    for i in prange(1, u.shape[0] - 1):
        for j in range(1, u.shape[1] - 1):
            u[i, j] = (
                hy2 * (uold[i, j - 1] + uold[i, j + 1])
                + hx2 * (uold[i - 1, j] + uold[i + 1, j])
                + hx2 * hy2 * f[i, j]
            ) / (2.0 * (hx2 + hy2))


class NumPyKernel:
    """NumPy-based Jacobi kernel.

    With ``n_threads > 1`` the interior rows are split into contiguous
    ranges and swept by a fixed-size thread pool; NumPy releases the GIL
    in the array arithmetic. Each thread writes only its own rows.
    """

    name = "numpy"

    def __init__(self, n_threads: int = 1):
        self.n_threads = n_threads
        self.observed_numba_threads = None  # Not applicable for NumPy
        self._pool = None
        self._pool_size = 0

    def step(self, uold, u, f, hx, hy, n_threads=None):
        """Perform one Jacobi sweep."""
        n_threads = n_threads or self.n_threads
        rows = u.shape[0]
        if rows < 3:
            return
        hx2, hy2 = hx * hx, hy * hy

        if n_threads <= 1:
            _jacobi_rows(uold, u, f, hx2, hy2, 1, rows - 1)
            return

        pool = self._get_pool(n_threads)
        futures = [
            pool.submit(_jacobi_rows, uold, u, f, hx2, hy2, lo, hi)
            for lo, hi in _row_chunks(1, rows - 1, n_threads)
        ]
        for fut in futures:
            fut.result()

    def _get_pool(self, n_threads):
        if self._pool is None or self._pool_size != n_threads:
            self.close()
            self._pool = ThreadPoolExecutor(max_workers=n_threads)
            self._pool_size = n_threads
        return self._pool

    def close(self):
        """Shut down the thread pool, if any."""
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
            self._pool_size = 0

    def warmup(self, warmup_size: int = 10):
        """No-op for NumPy kernel."""
        pass


class NumbaKernel:
    """Numba JIT-compiled Jacobi kernel (threads via prange)."""

    name = "numba"

    def __init__(self, n_threads: int = 1):
        self.n_threads = n_threads
        self._set_threads(n_threads)

    def _set_threads(self, n_threads):
        # Requested threads are clamped by NUMBA_NUM_THREADS
        numba.set_num_threads(max(1, min(n_threads, numba.config.NUMBA_NUM_THREADS)))
        self.observed_numba_threads = numba.get_num_threads()

    def step(self, uold, u, f, hx, hy, n_threads=None):
        """Perform one Jacobi sweep."""
        if n_threads is not None and n_threads != self.n_threads:
            self.n_threads = n_threads
            self._set_threads(n_threads)
        _jacobi_step_numba(uold, u, f, hx * hx, hy * hy)

    def close(self):
        pass

    def warmup(self, warmup_size: int = 10):
        """Trigger JIT compilation with a small problem."""
        h = 1.0 / (warmup_size - 1)
        u1 = np.zeros((warmup_size, warmup_size), dtype=np.float64)
        u2 = np.zeros_like(u1)
        f = np.random.randn(warmup_size, warmup_size)
        for _ in range(5):
            _jacobi_step_numba(u1, u2, f, h * h, h * h)
            u1, u2 = u2, u1


def create_kernel(use_numba: bool = False, n_threads: int = 1):
    """Factory: Numba kernel when requested, NumPy otherwise."""
    if use_numba:
        return NumbaKernel(n_threads=n_threads)
    return NumPyKernel(n_threads=n_threads)
